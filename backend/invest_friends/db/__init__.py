"""Database"""
