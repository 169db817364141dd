"""
Booking Engine - 房间可售性与价格解析服务
"""

__version__ = "1.0.0"
