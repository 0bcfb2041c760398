"""Core domain package for loanwatch.

Core contains overdue detection, the per-pass pipeline and the scheduler
without any HTTP, Slack or file-format code, keeping the business logic
portable.
"""
