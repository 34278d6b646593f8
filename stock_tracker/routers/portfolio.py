"""
投资组合路由
POST   /portfolio             - 新增
GET    /portfolio/{user_id}   - 查询
PUT    /portfolio             - 更新
DELETE /portfolio/{user_id}   - 删除
"""

import logging

from fastapi import APIRouter, status

from stock_tracker.models.response import ApiResponse
from stock_tracker.models.schemas import Portfolio
from stock_tracker.services.portfolio_service import get_portfolio_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolio", tags=["投资组合"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def add_portfolio(body: Portfolio):
    await get_portfolio_service().add(body)
    logger.info(f"投资组合已新增: {body.user_id}")
    return ApiResponse.ok(message="Portfolio added")


@router.get("/{user_id}", response_model=Portfolio)
async def get_portfolio(user_id: str):
    portfolio = await get_portfolio_service().get(user_id)
    logger.info(f"投资组合已读取: {user_id}")
    return portfolio


@router.put("", response_model=ApiResponse)
async def update_portfolio(body: Portfolio):
    await get_portfolio_service().update(body)
    logger.info(f"投资组合已更新: {body.user_id}")
    return ApiResponse.ok(message="Portfolio updated")


@router.delete("/{user_id}", response_model=ApiResponse)
async def delete_portfolio(user_id: str):
    await get_portfolio_service().delete(user_id)
    logger.info(f"投资组合已删除: {user_id}")
    return ApiResponse.ok(message="Portfolio deleted")
