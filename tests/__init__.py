"""
Alarmist Test Suite
"""
