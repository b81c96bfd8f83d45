"""API routers package"""
