from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ferrycast.api.v1.routes.health import router as health_router
from ferrycast.api.v1.routes.model_parameters import router as model_parameters_router
from ferrycast.api.v1.routes.predictions import router as predictions_router
from ferrycast.api.v1.routes.vessel_trips import router as vessel_trips_router
from ferrycast.core.log import configure_logging_if_needed

configure_logging_if_needed()

app = FastAPI(title="FerryCast API")

# Read-mostly API consumed by the map client; open CORS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/v1")
app.include_router(vessel_trips_router)
app.include_router(predictions_router)
app.include_router(model_parameters_router)
