from fastapi import Request

from ptoflow.services.container import Services


def get_services(request: Request) -> Services:
    # Built once per process on startup; tests swap it via dependency_overrides
    return request.app.state.services
