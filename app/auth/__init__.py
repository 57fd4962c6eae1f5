"""
Auth Module - club sign-up, login and session tokens
"""
