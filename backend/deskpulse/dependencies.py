from fastapi import Request

from deskpulse.runtime import MetricsRuntime


def get_runtime(request: Request) -> MetricsRuntime:
    return request.app.state.runtime
