"""
Web layer for the Sulphuric Bench backend.

create_app() in bench_web.app assembles the routers; bench_web.main
exposes the configured module-level app for uvicorn.
"""
