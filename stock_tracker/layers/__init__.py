"""
数据流分层架构
  Layer 1 – Acquisition  : 数据获取（Alpha Vantage 日线）
  Layer 2 – Store        : 历史价格持久化（MongoDB，即缓存本身）
  Layer 3 – Processing   : 日期与收盘价标准化
"""
