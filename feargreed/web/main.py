"""
Web 服务启动脚本
"""

import os

import uvicorn


def feargreed_main() -> None:
    """启动 FastAPI Web 服务"""

    # 配置
    host = os.getenv("FEARGREED_HOST", "0.0.0.0")
    port = int(os.getenv("FEARGREED_PORT", "8000"))
    reload = os.getenv("FEARGREED_RELOAD", "false").lower() == "true"

    # 启动服务
    uvicorn.run("feargreed.web.app:app", host=host, port=port, reload=reload, log_level="info")


if __name__ == "__main__":
    feargreed_main()
