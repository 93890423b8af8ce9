#!/usr/bin/env python3
"""
FastAPIサーバーを起動するエントリポイント
"""
import os
import sys
from pathlib import Path

# プロジェクトルートをPYTHONPATHに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()
    uvicorn.run(
        "api.main:app",
        host=os.getenv("DEMO_API_HOST", "0.0.0.0"),
        port=int(os.getenv("DEMO_API_PORT", "8000")),
        reload=os.getenv("DEMO_API_RELOAD", "1") == "1",  # 開発時の自動リロード
    )
