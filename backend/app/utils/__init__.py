"""Shared helpers: tokens, credentials, revocation, mail, logging"""
