"""Fixed fallback data served when live retrieval fails and nothing is cached."""

from market_sync.models import (
    FALLBACK_ID_PREFIX,
    HistoryPoint,
    MarketIndex,
    NewsCategory,
    NewsItem,
    Post,
    SectorData,
    Sentiment,
    StockSnapshot,
)

SEED_INDICES: tuple[MarketIndex, ...] = (
    MarketIndex(name="上证指数", value=3021.45, change_percent=0.15, change_absolute=4.5, code="1.000001"),
    MarketIndex(name="深证成指", value=9451.12, change_percent=-0.21, change_absolute=-15.4, code="0.399001"),
)

SEED_NEWS: tuple[NewsItem, ...] = (
    NewsItem(
        id=f"{FALLBACK_ID_PREFIX}1",
        title="【系统提示】实时财经数据源暂时不可用，请稍后刷新重试",
        source="系统",
        url="#",
        timestamp=None,
        category=NewsCategory.MACRO,
        sentiment=Sentiment.NEUTRAL,
    ),
    NewsItem(
        id=f"{FALLBACK_ID_PREFIX}2",
        title="市场概览：A股三大指数震荡整理，北向资金净流入15亿元",
        source="模拟数据",
        url="#",
        timestamp=None,
        category=NewsCategory.A_SHARE,
        sentiment=Sentiment.NEUTRAL,
    ),
    NewsItem(
        id=f"{FALLBACK_ID_PREFIX}3",
        title="央行公告：今日开展1000亿元逆回购操作",
        source="模拟数据",
        url="#",
        timestamp=None,
        category=NewsCategory.MACRO,
        sentiment=Sentiment.POSITIVE,
    ),
)

SEED_SECTORS: tuple[SectorData, ...] = (
    SectorData(name="半导体", change_percent=2.15, hot_stock="中芯国际", icon="💾"),
    SectorData(name="中特估", change_percent=0.85, hot_stock="中国海油", icon="💰"),
    SectorData(name="AI应用", change_percent=1.45, hot_stock="昆仑万维", icon="🤖"),
    SectorData(name="高股息", change_percent=0.52, hot_stock="长江电力", icon="📈"),
)

SEED_POSTS: tuple[Post, ...] = (
    Post(
        id=f"{FALLBACK_ID_PREFIX}p1",
        author="日斗智库",
        title="【实时追踪】核心资产逻辑重估：寻找确定性锚点",
        content="在当前宏观环境下，传统的博弈逻辑正在失效，产业逻辑的权重在持续上升...",
        timestamp="",
        likes=1200,
        comments=85,
        views=5600,
        tags=("策略", "核心资产"),
        is_featured=True,
    ),
)

# Last-known reference quotes for a few heavily watched names
_SEED_STOCK_QUOTES: dict[str, tuple[str, float]] = {
    "688981": ("中芯国际", 71.42),
    "601138": ("工业富联", 24.85),
    "300059": ("东方财富", 15.92),
    "600519": ("贵州茅台", 1718.50),
}


def seed_stock(symbol: str) -> StockSnapshot | None:
    """Flat, explicitly synthesized snapshot for a known symbol, else None."""
    code = symbol.strip().upper()
    if code[:2] in ("SH", "SZ"):
        code = code[2:]
    seed = _SEED_STOCK_QUOTES.get(code)
    if seed is None:
        return None
    name, price = seed
    return StockSnapshot(
        symbol=symbol,
        name=name,
        price=price,
        change_percent=0.0,
        change_absolute=0.0,
        history=(HistoryPoint(time="09:30", value=price), HistoryPoint(time="15:00", value=price)),
        history_source="synthesized",
    )
