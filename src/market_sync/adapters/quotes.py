"""Market index quotes (Eastmoney push2 batch endpoint)."""

from market_sync.adapters._eastmoney import diff_rows, scaled
from market_sync.data.transport import HttpTransport
from market_sync.errors import ErrorKind, SourceError
from market_sync.models import MarketIndex

SOURCE = "eastmoney.quotes"

# (secid, display name)
INDEX_INSTRUMENTS: tuple[tuple[str, str], ...] = (
    ("1.000001", "上证指数"),
    ("0.399001", "深证成指"),
    ("0.399006", "创业板指"),
    ("100.HSI", "恒生指数"),
    ("100.NDX", "纳斯达克"),
)


class QuotesAdapter:
    """Fetches the whole index board in a single batched call."""

    def __init__(
        self,
        transport: HttpTransport,
        base_url: str = "https://push2.eastmoney.com",
        instruments: tuple[tuple[str, str], ...] = INDEX_INSTRUMENTS,
    ):
        self._transport = transport
        self._url = f"{base_url.rstrip('/')}/api/qt/ulist.np/get"
        self.instruments = instruments

    async def fetch_indices(self) -> list[MarketIndex]:
        """
        Fetch all configured indices.

        Returns:
            One MarketIndex per configured instrument, in configured order

        Raises:
            SourceError: On transport failure or if any instrument is missing,
                so a partial board is never returned
        """
        payload = await self._transport.request_json(
            SOURCE,
            "GET",
            self._url,
            params={
                "fltt": 1,
                "fields": "f2,f3,f4,f12,f13,f14",
                "secids": ",".join(secid for secid, _ in self.instruments),
            },
        )
        rows = {f"{row.get('f13')}.{row.get('f12')}": row for row in diff_rows(payload, SOURCE)}

        indices: list[MarketIndex] = []
        for secid, name in self.instruments:
            row = rows.get(secid)
            if row is None:
                raise SourceError(f"{SOURCE}: no quote for {secid}", ErrorKind.FATAL, source=SOURCE)
            indices.append(
                MarketIndex(
                    name=name,
                    value=scaled(row, "f2", SOURCE),
                    change_percent=scaled(row, "f3", SOURCE),
                    change_absolute=scaled(row, "f4", SOURCE),
                    code=secid,
                )
            )
        return indices
