import os
import uvicorn
from furever_orders.core.config import settings

def main():
    uvicorn.run(
        "furever_orders.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=settings.LOG_LEVEL.lower(),
    )

if __name__ == "__main__":
    main()
