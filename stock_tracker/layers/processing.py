"""
Layer 3 – 数据处理层
把数据源返回的日线记录标准化为 (UTC 零点时间戳, 收盘价) 序列。
"""

import logging
from datetime import datetime
from typing import List, Mapping, Optional, Tuple

import pandas as pd

from stock_tracker.layers.acquisition import DailyBar
from stock_tracker.models.schemas import to_utc_millis

logger = logging.getLogger(__name__)

NormalizedPoint = Tuple[datetime, float]


class ProcessingLayer:
    """数据处理层：日期标准化 + 收盘价解析 + 窗口过滤"""

    def normalize_daily_series(
        self,
        series: Mapping[str, DailyBar],
        policy: str = "zero",
    ) -> List[NormalizedPoint]:
        """
        日线记录 → [(timestamp, close)]，按时间升序

        - 日期解释为当日 UTC 零点，无法解析的日期直接跳过
        - 只保留收盘价；收盘价无法解析时 policy="zero" 记为 0.0，
          policy="skip" 丢弃该条
        """
        if not series:
            return []

        df = pd.DataFrame(
            [{"date": day, "close": bar.close} for day, bar in series.items()]
        )

        df["timestamp"] = pd.to_datetime(
            df["date"], format="%Y-%m-%d", errors="coerce", utc=True
        )
        bad_dates = df["timestamp"].isna()
        if bad_dates.any():
            logger.warning(f"跳过 {int(bad_dates.sum())} 条无法解析的日期: {df.loc[bad_dates, 'date'].tolist()}")
            df = df.loc[~bad_dates].copy()

        df["price"] = pd.to_numeric(df["close"], errors="coerce")
        bad_close = df["price"].isna()
        if bad_close.any():
            days = df.loc[bad_close, "date"].tolist()
            if policy == "skip":
                logger.warning(f"丢弃 {len(days)} 条收盘价无效的记录: {days}")
                df = df.loc[~bad_close].copy()
            else:
                logger.warning(f"{len(days)} 条收盘价无效，按 0.0 处理: {days}")
                df["price"] = df["price"].fillna(0.0)

        df = df.drop_duplicates(subset=["timestamp"], keep="last")
        df = df.sort_values("timestamp").reset_index(drop=True)

        return [
            (to_utc_millis(ts.to_pydatetime()), float(price))
            for ts, price in zip(df["timestamp"], df["price"])
        ]

    def filter_window(
        self,
        points: List[NormalizedPoint],
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> List[NormalizedPoint]:
        """按 [start, end] 闭区间过滤"""
        lo = to_utc_millis(start) if start else None
        hi = to_utc_millis(end) if end else None
        return [
            (ts, price) for ts, price in points
            if (lo is None or ts >= lo) and (hi is None or ts <= hi)
        ]


# ── 模块级别单例 ──────────────────────────────────────────
_processor: Optional[ProcessingLayer] = None


def get_processing_layer() -> ProcessingLayer:
    global _processor
    if _processor is None:
        _processor = ProcessingLayer()
    return _processor
