from flask_restx import Api

# Initialize API with Swagger documentation
api = Api(
    version='1.0',
    title='Vertex Playground API',
    description='Multi-file code playground with a sandboxed Python runner',
    doc='/docs',
    prefix='/api/v1'
)
