import uvicorn

from dropship_api.core.config import settings

if __name__ == "__main__":
    uvicorn.run("dropship_api.main:app", host="0.0.0.0", port=settings.port, proxy_headers=True)
