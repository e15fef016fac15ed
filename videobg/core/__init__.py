"""
Core business logic for background video pages.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. Handlers and storage adapters depend on it,
and it can be tested against an in-memory store.
"""
