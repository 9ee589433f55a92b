from fastapi import FastAPI
from app.core.firebase import init_firebase
from app.api.routes.router import api_router
from app.services.food_catalog import get_catalog

app = FastAPI(title="Ayurvedic Diet Planner Backend")


@app.on_event("startup")
def startup():
    """Initialize Firebase and warm the food catalog cache at app startup."""
    # Initialize Firebase Admin (reads credentials path from env)
    init_firebase()

    catalog = get_catalog()
    print(f"Food catalog loaded: {len(catalog)} items")


@app.get("/")
async def root():
    return {"message": "Ayurvedic Diet Planner Backend is running"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(api_router)
