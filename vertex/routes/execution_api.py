from flask_restx import Namespace, Resource, fields
from vertex.identity import get_registry

# Create namespace
ns = Namespace('executions', description='Execution log')

execution_record_model = ns.model('ExecutionLogRecord', {
    'at': fields.Integer(description='Run time, epoch milliseconds'),
    'channel': fields.String(description='Run channel', enum=['client', 'sandbox']),
    'language': fields.String(description='Run language'),
    'status': fields.String(description='Run outcome', enum=['ok', 'error']),
    'user': fields.String(description='Acting user ID')
})

execution_list_response = ns.model('ExecutionLogResponse', {
    'limit': fields.Integer(description='Maximum number of retained records'),
    'executions': fields.List(fields.Nested(execution_record_model))
})


@ns.route('')
class ExecutionLogList(Resource):
    @ns.doc('get_execution_log')
    @ns.marshal_with(execution_list_response)
    def get(self):
        """Retained run attempts, oldest first"""
        execution_log = get_registry().execution_log
        return {
            "limit": execution_log.limit,
            "executions": execution_log.records()
        }, 200
