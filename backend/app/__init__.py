"""Job Portal backend"""
