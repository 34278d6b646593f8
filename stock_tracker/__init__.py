"""
Stock Tracker 行情缓存服务
独立的历史价格缓存微服务，提供 HTTP 接口

架构分层：
  数据获取层 (Acquisition)  → 从 Alpha Vantage 拉取日线数据
  存储层     (Store)        → MongoDB 持久化的历史价格（即缓存本身）
  处理层     (Processing)   → 数据清洗、收盘价标准化
  服务层     (Services)     → Cache-Aside 解析器 / 预取队列 / 投资组合
"""

__version__ = "1.0.0"
