"""Caller identity and authorization.

Learn: tokens are issued by the surrounding platform. This package only:
1. Reads the bearer JWT (if any) to learn the caller's email
2. Decides whether that caller is an administrator (group membership)

Everything else treats the caller as anonymous.
"""
