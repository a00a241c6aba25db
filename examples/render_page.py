import asyncio
import logging
import sys
from pathlib import Path

from remote_views import RemoteViews, RemoteViewsError

# Configure logging
logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

VIEWS_DIR = Path(__file__).parent.parent / "tests" / "fixtures" / "views"


async def main(layout_url: str = None):
    async with RemoteViews(
        layout=layout_url or False,
        partials_dir=str(VIEWS_DIR / "partials"),
        max_age=300,
        stale_while_revalidate=60
    ) as views:
        try:
            logger.info("Rendering index view...")
            first = await views.render(str(VIEWS_DIR / "index.handlebars"), {"title": "Hello"})
            print(first)

            logger.info("Rendering again from cache...")
            second = await views.render(str(VIEWS_DIR / "index.handlebars"), {"title": "Again"})
            print(second)

            logger.info(f"Remote cache stats: {views.cache.stats}")
        except RemoteViewsError as e:
            logger.error(f"Render failed: {e}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None)))
