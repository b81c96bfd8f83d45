"""Core configuration and exception handling"""
