"""Simple entrypoint to inspect the closet catalog locally."""

import asyncio
import json

from closet_app.app import ClosetApp


async def _summary() -> dict:
    app = ClosetApp()
    await app.load()
    summary = {
        "items": {category: len(items) for category, items in app.catalog_payload().items()},
        "outfits": len(app.outfits.outfits()),
        "logged_days": app.outfit_log.logged_dates(),
        "notices": [notice.message for notice in app.drain_notices()],
    }
    await app.flush()
    return summary


def main() -> None:
    print(json.dumps(asyncio.run(_summary()), indent=2))


if __name__ == "__main__":
    main()
