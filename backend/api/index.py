"""
Serverless Entry Point for the Origo API
Using Mangum for ASGI to AWS Lambda adapter
"""
from mangum import Mangum

from origo.main import create_app

app = create_app()

# Mangum handler for serverless
handler = Mangum(app, lifespan="off")
