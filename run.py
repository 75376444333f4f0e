import sys, asyncio
if sys.platform.startswith("win"):
    # loop compatível ANTES de o uvicorn criar o dele
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import uvicorn

from playjazz_crm.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "playjazz_crm.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "dev",
        log_level=settings.LOG_LEVEL.lower(),
    )
