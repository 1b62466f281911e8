"""Account and session operations, independent of the HTTP layer"""
