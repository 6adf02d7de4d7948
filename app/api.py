"""File defining all the routes for the application, to configure the router"""

from fastapi import APIRouter

from app.module import core_module_list

api_router = APIRouter()


for module in core_module_list:
    api_router.include_router(module.router)
