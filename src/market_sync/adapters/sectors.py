"""Industry board ranking (Eastmoney push2 clist endpoint)."""

from market_sync.adapters._eastmoney import diff_rows, scaled
from market_sync.data.transport import HttpTransport
from market_sync.models import SectorData

SOURCE = "eastmoney.sectors"

# First matching keyword picks the icon
SECTOR_ICONS: tuple[tuple[str, str], ...] = (
    ("半导体", "💾"),
    ("芯片", "💾"),
    ("电子", "💾"),
    ("软件", "🤖"),
    ("计算机", "🤖"),
    ("通信", "📡"),
    ("银行", "💰"),
    ("证券", "💰"),
    ("保险", "💰"),
    ("电池", "🔋"),
    ("电力", "🔋"),
    ("汽车", "🚗"),
    ("医", "💊"),
    ("石油", "🛢️"),
)
DEFAULT_ICON = "📈"


def sector_icon(name: str) -> str:
    for keyword, icon in SECTOR_ICONS:
        if keyword in name:
            return icon
    return DEFAULT_ICON


class SectorsAdapter:
    """Top industry boards by percent change."""

    def __init__(self, transport: HttpTransport, base_url: str = "https://push2.eastmoney.com"):
        self._transport = transport
        self._url = f"{base_url.rstrip('/')}/api/qt/clist/get"

    async def fetch_sectors(self, limit: int = 4) -> list[SectorData]:
        """
        Fetch the best-performing industry boards.

        Fields: f14 board name, f3 percent change (scaled by 100),
        f128 leading stock name.
        """
        payload = await self._transport.request_json(
            SOURCE,
            "GET",
            self._url,
            params={
                "pn": 1,
                "pz": limit,
                "po": 1,
                "np": 1,
                "fltt": 1,
                "invt": 2,
                "fid": "f3",
                "fs": "m:90 t:2",
                "fields": "f3,f12,f14,f128",
            },
        )
        sectors: list[SectorData] = []
        for row in diff_rows(payload, SOURCE)[:limit]:
            name = str(row.get("f14") or row.get("f12") or "")
            sectors.append(
                SectorData(
                    name=name,
                    change_percent=scaled(row, "f3", SOURCE),
                    hot_stock=str(row.get("f128") or "-"),
                    icon=sector_icon(name),
                )
            )
        return sectors
