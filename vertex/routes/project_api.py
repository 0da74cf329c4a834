import logging
from flask_restx import Namespace, Resource, fields
from vertex.identity import current_user_context, get_registry
from vertex.services.execution_router import OUTPUT_MODES
from vertex.services.project_store import SubmittedProjectError

logger = logging.getLogger(__name__)

# Create namespace
ns = Namespace('projects', description='Playground project operations')

# Define models for Swagger documentation
file_model = ns.model('ProjectFile', {
    'id': fields.String(description='File ID'),
    'name': fields.String(description='File name'),
    'language': fields.String(description='File language', enum=['html', 'css', 'javascript', 'python']),
    'content': fields.String(description='File content')
})

tab_model = ns.model('EditorTab', {
    'id': fields.String(description='File ID'),
    'name': fields.String(description='File name'),
    'language': fields.String(description='File language'),
    'active': fields.Boolean(description='Whether this is the active file'),
    'disabled': fields.Boolean(description='Tabs are disabled once submitted')
})

file_row_model = ns.model('FileExplorerRow', {
    'id': fields.String(description='File ID'),
    'name': fields.String(description='File name'),
    'meta': fields.String(description='Upper-cased language label'),
    'active': fields.Boolean(description='Whether this is the active file'),
    'disabled': fields.Boolean(description='Rows are disabled once submitted')
})

user_model = ns.model('UserContext', {
    'id': fields.String(description='User ID'),
    'role': fields.String(description='Role', enum=['student', 'staff', 'admin']),
    'role_label': fields.String(description='Role badge text')
})

editor_model = ns.model('EditorState', {
    'buffer': fields.String(description='Text shown in the editor'),
    'language_mode': fields.String(description='Editor syntax mode'),
    'read_only': fields.Boolean(description='Whether editing is disabled')
})

project_model = ns.model('ProjectState', {
    'project_name': fields.String(description='Project name'),
    'user': fields.Nested(user_model),
    'files': fields.List(fields.Nested(file_model)),
    'active_file_id': fields.String(description='Active file ID'),
    'submitted': fields.Boolean(description='Whether the project is read-only'),
    'dirty': fields.Boolean(description='Unsaved in-memory changes'),
    'save_state': fields.String(description='Save status text'),
    'last_edited': fields.Integer(description='Last save, epoch milliseconds'),
    'last_edited_label': fields.String(description='Formatted last-edited text'),
    'editor': fields.Nested(editor_model),
    'tabs': fields.List(fields.Nested(tab_model)),
    'file_rows': fields.List(fields.Nested(file_row_model)),
    'output_mode': fields.String(description='Visible output panel', enum=list(OUTPUT_MODES)),
    'console': fields.String(description='Console panel text'),
    'preview': fields.String(description='Preview iframe srcdoc'),
    'execution_log': fields.String(description='Execution status text')
})

run_model = ns.model('RunReport', {
    'channel': fields.String(description='Run channel', enum=['client', 'sandbox']),
    'language': fields.String(description='Run language'),
    'status': fields.String(description='Run outcome', enum=['ok', 'error']),
    'error': fields.String(description='Failure code (rejected, timeout, busy, ...)'),
    'output_mode': fields.String(description='Visible output panel'),
    'console': fields.String(description='Console panel text'),
    'preview': fields.String(description='Preview iframe srcdoc'),
    'execution_log': fields.String(description='Execution status text')
})

buffer_model = ns.model('BufferUpdate', {
    'content': fields.String(required=True, description='New buffer content')
})

active_file_model = ns.model('ActiveFileUpdate', {
    'file_id': fields.String(required=True, description='File to activate')
})

new_file_model = ns.model('NewFile', {
    'name': fields.String(required=True, description='File name, e.g. helpers.py')
})

output_mode_model = ns.model('OutputModeUpdate', {
    'mode': fields.String(required=True, enum=list(OUTPUT_MODES))
})

error_model = ns.model('Error', {
    'message': fields.String(description='Error message')
})


def _playground(project_name):
    return get_registry().get(current_user_context(), project_name)


@ns.route('/<string:project_name>')
@ns.param('project_name', 'The project name')
class ProjectDetail(Resource):
    @ns.doc('get_project')
    @ns.marshal_with(project_model)
    def get(self, project_name):
        """Open a project, creating it from the starter files if needed"""
        return _playground(project_name).describe(), 200

    @ns.doc('close_project')
    @ns.response(204, 'Session closed')
    @ns.response(404, 'No open session for this project', error_model)
    def delete(self, project_name):
        """Close the open session, writing any pending autosave and stopping its Python worker"""
        if not get_registry().close(current_user_context(), project_name):
            ns.abort(404, 'No open session for this project')
        return '', 204


@ns.route('/<string:project_name>/buffer')
@ns.param('project_name', 'The project name')
class ProjectBuffer(Resource):
    @ns.doc('edit_buffer')
    @ns.expect(buffer_model)
    @ns.marshal_with(project_model)
    @ns.response(400, 'Invalid request data', error_model)
    @ns.response(409, 'Project has been submitted', error_model)
    def put(self, project_name):
        """Replace the active file's buffer (autosaved after a quiet period)"""
        data = ns.payload or {}
        content = data.get('content')
        if not isinstance(content, str):
            ns.abort(400, 'content must be a string')

        playground = _playground(project_name)
        if not playground.edit(content):
            ns.abort(409, 'Project has been submitted')
        return playground.describe(), 200


@ns.route('/<string:project_name>/active-file')
@ns.param('project_name', 'The project name')
class ProjectActiveFile(Resource):
    @ns.doc('select_file')
    @ns.expect(active_file_model)
    @ns.marshal_with(project_model)
    @ns.response(404, 'File not found', error_model)
    def put(self, project_name):
        """Switch the editor to another file"""
        data = ns.payload or {}
        playground = _playground(project_name)
        try:
            playground.select_file(data.get('file_id'))
        except KeyError:
            ns.abort(404, 'File not found')
        return playground.describe(), 200


@ns.route('/<string:project_name>/files')
@ns.param('project_name', 'The project name')
class ProjectFiles(Resource):
    @ns.doc('add_file')
    @ns.expect(new_file_model)
    @ns.marshal_with(project_model, code=201)
    @ns.response(400, 'Invalid file name', error_model)
    @ns.response(409, 'Project has been submitted', error_model)
    def post(self, project_name):
        """Add an empty file; its language comes from the extension"""
        data = ns.payload or {}
        playground = _playground(project_name)
        try:
            playground.add_file(data.get('name'))
        except SubmittedProjectError:
            ns.abort(409, 'Project has been submitted')
        except ValueError as e:
            ns.abort(400, str(e))
        return playground.describe(), 201


@ns.route('/<string:project_name>/save')
@ns.param('project_name', 'The project name')
class ProjectSave(Resource):
    @ns.doc('save_project')
    @ns.marshal_with(project_model)
    def post(self, project_name):
        """Save immediately"""
        playground = _playground(project_name)
        playground.save()
        return playground.describe(), 200


@ns.route('/<string:project_name>/submit')
@ns.param('project_name', 'The project name')
class ProjectSubmit(Resource):
    @ns.doc('submit_project')
    @ns.marshal_with(project_model)
    def post(self, project_name):
        """Submit the project; it becomes read-only for good"""
        playground = _playground(project_name)
        playground.submit()
        return playground.describe(), 200


@ns.route('/<string:project_name>/run')
@ns.param('project_name', 'The project name')
class ProjectRun(Resource):
    @ns.doc('run_project')
    @ns.marshal_with(run_model)
    @ns.response(404, 'Project has no files', error_model)
    def post(self, project_name):
        """Run the active file: Python in the sandbox, anything else in the preview"""
        report = _playground(project_name).run()
        if report is None:
            ns.abort(404, 'Project has no files')
        return report, 200


@ns.route('/<string:project_name>/output-mode')
@ns.param('project_name', 'The project name')
class ProjectOutputMode(Resource):
    @ns.doc('set_output_mode')
    @ns.expect(output_mode_model)
    @ns.marshal_with(project_model)
    @ns.response(400, 'Unknown output mode', error_model)
    def put(self, project_name):
        """Show the live preview or the console without re-running"""
        data = ns.payload or {}
        playground = _playground(project_name)
        try:
            playground.set_output_mode(data.get('mode'))
        except ValueError as e:
            ns.abort(400, str(e))
        return playground.describe(), 200
