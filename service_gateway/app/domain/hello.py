"""
Terminal handler for the Gateway pipeline.
"""

from service_gateway.app.pipeline.chain import PipelineRequest, PipelineResponse

HELLO_MESSAGE = "Hello from HelloHandler!\n"


class HelloHandler:
    """Answer every admitted request with the fixed greeting."""

    def __call__(self, request: PipelineRequest) -> PipelineResponse:
        return PipelineResponse(status_code=200, body=HELLO_MESSAGE)
