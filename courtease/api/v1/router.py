"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from courtease.api.v1 import bookings, jobs, payments, venues

api_router = APIRouter()

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Payments (Midtrans notifications)
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# Venue operators
api_router.include_router(venues.router, prefix="/venues", tags=["Venues"])

# Scheduled jobs
api_router.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])
