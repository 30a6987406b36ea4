"""Core components: tokens, quota, candidate selection, scoring and orchestration"""
