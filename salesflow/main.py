from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from salesflow.config import settings
from salesflow.db import SessionLocal
from salesflow.logging_config import configure_logging
from salesflow.routers import budgets, finance, orders, pricing
from salesflow.security.principal import install_principal_middleware

configure_logging(level=settings.log_level, json_lines=settings.log_json)

app = FastAPI(title='Salesflow')
app.state.session_factory = SessionLocal

install_principal_middleware(app)

app.include_router(pricing.router)
app.include_router(budgets.router)
app.include_router(orders.router)
app.include_router(finance.router)


@app.get('/health', response_class=PlainTextResponse)
def health() -> str:
    return 'ok'
