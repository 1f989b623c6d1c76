"""
RoadBlock Alerts - community road incident reporting backend.
"""
