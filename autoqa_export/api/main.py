import logging

from fastapi import FastAPI

from autoqa_export import __version__
from autoqa_export.config import API_PREFIX, get_log_level
from autoqa_export.api.routers import exports

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="AutoQA Export",
    description="Compile recorded browser traces into Playwright tests",
    version=__version__,
)

app.include_router(exports.router, prefix=API_PREFIX)


@app.get("/")
async def root():
    return {"message": "AutoQA Export API. Go to /docs for documentation."}
