"""Core (설정, 로깅, 예외, 에러 전략)"""
