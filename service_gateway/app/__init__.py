"""
API Gateway Service package.

The gateway serves a single endpoint through a fixed request pipeline:
- Request logging: start line and completion time for every request
- Authentication: static API key compared against the X-API-Key header
- Rate limiting: one admitted request per client per cooldown window

Structure:
- app.main: FastAPI app, pipeline wiring and the endpoint.
- app.pipeline: Request/response types and the middleware chain.
- app.auth: Static key authenticator.
- app.ratelimit: Cooldown limiter and its pipeline stage.
- app.domain: Logging and auth stages, client identity, terminal handler.
"""
