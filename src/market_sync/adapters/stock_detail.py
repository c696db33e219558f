"""Single-stock quote and intraday trend (Eastmoney push2 / push2his)."""

from dataclasses import dataclass

import pandas as pd

from market_sync.adapters._eastmoney import scaled, to_secid
from market_sync.data.transport import HttpTransport
from market_sync.errors import ErrorKind, SourceError
from market_sync.models import HistoryPoint

SOURCE = "eastmoney.stock"
TREND_SOURCE = "eastmoney.trend"

# Chart resolution for the intraday series
TREND_BUCKET = "30min"


@dataclass(frozen=True)
class StockQuote:
    symbol: str
    name: str
    price: float
    change_percent: float
    change_absolute: float


class StockDetailAdapter:
    """Point quote and minute trend for one A-share symbol."""

    def __init__(
        self,
        transport: HttpTransport,
        base_url: str = "https://push2.eastmoney.com",
        history_base_url: str = "https://push2his.eastmoney.com",
    ):
        self._transport = transport
        self._quote_url = f"{base_url.rstrip('/')}/api/qt/stock/get"
        self._trend_url = f"{history_base_url.rstrip('/')}/api/qt/stock/trends2/get"

    async def fetch_quote(self, symbol: str) -> StockQuote:
        """
        Fetch the latest quote.

        Fields: f43 last price, f170 percent change, f169 absolute change,
        f58 display name. Numeric fields are scaled by 100.

        Raises:
            SourceError: On transport failure or unknown/suspended symbol
        """
        payload = await self._transport.request_json(
            SOURCE,
            "GET",
            self._quote_url,
            params={"secid": to_secid(symbol), "fltt": 1, "fields": "f43,f58,f169,f170"},
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        if not data:
            raise SourceError(f"{SOURCE}: unknown symbol {symbol}", ErrorKind.FATAL, source=SOURCE)

        return StockQuote(
            symbol=symbol,
            name=str(data.get("f58") or symbol),
            price=scaled(data, "f43", SOURCE),
            change_percent=scaled(data, "f170", SOURCE),
            change_absolute=scaled(data, "f169", SOURCE),
        )

    async def fetch_trend(self, symbol: str) -> tuple[HistoryPoint, ...]:
        """
        Fetch today's minute trend, downsampled to 30-minute points.

        trends2 rows are "YYYY-MM-DD HH:MM,price" strings with plain
        decimal prices (no scaling).

        Raises:
            SourceError: On transport failure or an empty trend
        """
        payload = await self._transport.request_json(
            TREND_SOURCE,
            "GET",
            self._trend_url,
            params={
                "secid": to_secid(symbol),
                "fields1": "f1,f2,f3",
                "fields2": "f51,f53",
                "ndays": 1,
                "iscr": 0,
            },
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        trends = (data or {}).get("trends") or []
        if not trends:
            raise SourceError(
                f"{TREND_SOURCE}: no trend for {symbol}", ErrorKind.FATAL, source=TREND_SOURCE
            )
        return resample_trend(trends)


def resample_trend(rows: list[str], bucket: str = TREND_BUCKET) -> tuple[HistoryPoint, ...]:
    """
    Downsample minute rows to the last price in each bucket.

    Buckets with no trading (lunch break) are dropped.
    """
    split = [row.split(",")[:2] for row in rows if row and "," in row]
    df = pd.DataFrame(split, columns=["time", "value"])
    df["time"] = pd.to_datetime(df["time"], errors="coerce")
    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    df = df.dropna().set_index("time").sort_index()
    if df.empty:
        raise SourceError(
            f"{TREND_SOURCE}: unparseable trend rows", ErrorKind.FATAL, source=TREND_SOURCE
        )

    series = df["value"].resample(bucket).last().dropna()
    return tuple(
        HistoryPoint(time=ts.strftime("%H:%M"), value=round(float(value), 2))
        for ts, value in series.items()
    )
