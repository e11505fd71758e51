#!/usr/bin/env python3
"""
Virtual Try-On - Web Application
Flask server relaying try-on requests to Gemini, with a Socket.IO channel
that hosts an upload wizard per connected client.
"""

import base64
import binascii
import logging
from io import BytesIO
from flask import Blueprint, Flask, current_app, jsonify, request, send_file
from flask_socketio import SocketIO, emit
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from config import Settings
from models.schemas import FileRef, GenerationProgress
from services.errors import TryOnError, ValidationError
from services.preview_store import PreviewStore
from services.result_display import to_data_uri
from services.session_manager import SessionManager
from services.tryon_relay import TryOnRelay
from services.upload_wizard import UploadWizard, WizardListener
from services.utils import guess_mime_type

logger = logging.getLogger(__name__)

# Initialized against an app in create_app
socketio = SocketIO()

api = Blueprint('api', __name__)


def create_app(settings=None, relay=None):
    """
    Build the Flask application.

    Args:
        settings: Settings instance (defaults to Settings.from_env())
        relay: Object with generate(model_image, clothing_image); defaults to
            a TryOnRelay using the configured Gemini key

    Returns:
        Flask app with the Socket.IO extension attached
    """
    settings = settings or Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = settings.max_content_length
    app.config['SECRET_KEY'] = settings.secret_key

    # Enable CORS
    CORS(app, origins=settings.cors_origins)

    if relay is None:
        relay = TryOnRelay(api_key=settings.gemini_api_key, model=settings.gemini_model)
        if not relay.is_configured:
            logger.warning("GEMINI_API_KEY is not set; /api/upload will answer 500")

    previews = PreviewStore()

    def wizard_factory(listener):
        return UploadWizard(
            relay=relay,
            previews=previews,
            listener=listener,
            max_file_size=settings.max_file_size,
            tick_interval=settings.progress_tick_seconds,
            display_delay=settings.display_delay_seconds
        )

    app.extensions['tryon_settings'] = settings
    app.extensions['tryon_relay'] = relay
    app.extensions['preview_store'] = previews
    app.extensions['wizard_sessions'] = SessionManager(
        wizard_factory,
        session_timeout_minutes=settings.session_timeout_minutes
    )

    app.register_blueprint(api)
    app.register_error_handler(TryOnError, handle_tryon_error)
    app.register_error_handler(RequestEntityTooLarge, handle_too_large)

    socketio.init_app(
        app,
        cors_allowed_origins=settings.cors_origins,
        async_mode='threading',
        max_http_buffer_size=settings.max_content_length
    )

    return app


def handle_tryon_error(error):
    return jsonify(error.to_dict()), error.status_code


def handle_too_large(error):
    limit = current_app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
    return jsonify({'error': f'Upload too large (max {limit}MB)'}), 413


def upload_to_file_ref(upload):
    """Read a werkzeug FileStorage into a FileRef (None if not provided)"""
    if not upload or not upload.filename:
        return None

    name = secure_filename(upload.filename) or 'image'
    return FileRef(
        name=name,
        mime_type=guess_mime_type(upload.filename, upload.mimetype),
        data=upload.read()
    )


@api.route('/api/upload', methods=['POST'])
def upload():
    """
    Generate a try-on image

    Accepts:
        - modelImage: Photo of the person (required)
        - clothingImage: Photo of the garment (required)

    Returns:
        JSON with base64 image and its MIME type
    """
    relay = current_app.extensions['tryon_relay']

    model_image = upload_to_file_ref(request.files.get('modelImage'))
    clothing_image = upload_to_file_ref(request.files.get('clothingImage'))

    result = relay.generate(model_image, clothing_image)
    return jsonify(result.to_dict())


@api.route('/previews/<handle>')
def serve_preview(handle):
    """Serve the bytes behind a live preview handle"""
    file_ref = current_app.extensions['preview_store'].resolve(handle)
    if file_ref is None:
        return jsonify({'error': 'Preview not found'}), 404

    return send_file(BytesIO(file_ref.data), mimetype=file_ref.mime_type)


@api.route('/health')
def health():
    """Health check endpoint"""
    sessions = current_app.extensions['wizard_sessions']
    return jsonify({
        'status': 'healthy',
        'gemini_configured': bool(current_app.extensions['tryon_settings'].gemini_api_key),
        'active_sessions': sessions.get_session_count(),
        'live_previews': len(current_app.extensions['preview_store'])
    })


# WebSocket wizard channel

class SocketWizardListener(WizardListener):
    """Pushes wizard events to one Socket.IO client"""

    def __init__(self, sid):
        self.sid = sid

    def on_state_changed(self, state):
        socketio.emit('state', state.to_dict(), to=self.sid)

    def on_progress(self, percent):
        if percent >= 100:
            progress = GenerationProgress("complete", "Image generated", percent)
        else:
            progress = GenerationProgress("generating", "Generating try-on image...", percent)
        socketio.emit('progress', progress.to_dict(), to=self.sid)

    def on_generation_completed(self, event):
        socketio.emit('generation_completed', {
            'image': event.image,
            'mimeType': event.mime_type,
            'dataUri': to_data_uri(event.image)
        }, to=self.sid)


def current_wizard():
    """Wizard of the calling client, reopened if its session expired"""
    sessions = current_app.extensions['wizard_sessions']
    wizard = sessions.get_session(request.sid)
    if wizard is None:
        wizard = sessions.create_session(request.sid, SocketWizardListener(request.sid))
    return wizard


def decode_socket_file(item):
    """
    Turn a {name, type, data} payload into a FileRef.

    data may be raw bytes, a base64 string or a data URI.
    """
    if not isinstance(item, dict):
        raise ValidationError("Invalid file payload")

    name = item.get('name') or 'image'
    data = item.get('data')

    if isinstance(data, str):
        if data.startswith('data:') and ',' in data:
            data = data.split(',', 1)[1]
        try:
            data = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(f"Could not read {name}")
    elif not isinstance(data, (bytes, bytearray)):
        raise ValidationError(f"Could not read {name}")

    return FileRef(
        name=name,
        mime_type=guess_mime_type(name, item.get('type')),
        data=bytes(data)
    )


@socketio.on('connect')
def handle_connect(auth=None):
    """Handle client connection"""
    logger.info(f"Client connected: {request.sid}")
    sessions = current_app.extensions['wizard_sessions']
    sessions.cleanup_expired_sessions()
    wizard = sessions.create_session(request.sid, SocketWizardListener(request.sid))
    emit('connected', {'sid': request.sid})
    emit('state', wizard.to_dict())


@socketio.on('disconnect')
def handle_disconnect(*args):
    """Handle client disconnection"""
    logger.info(f"Client disconnected: {request.sid}")
    current_app.extensions['wizard_sessions'].close_session(request.sid)


@socketio.on('select_files')
def handle_select_files(data):
    files = [decode_socket_file(item) for item in (data or {}).get('files', [])]
    current_wizard().select_files(files)


@socketio.on('advance')
def handle_advance():
    current_wizard().advance()


@socketio.on('go_back')
def handle_go_back():
    current_wizard().go_back()


@socketio.on('remove_file')
def handle_remove_file(data):
    try:
        index = int((data or {}).get('index'))
    except (TypeError, ValueError):
        raise ValidationError("index must be an integer")
    current_wizard().remove_file(index)


@socketio.on('submit')
def handle_submit():
    wizard = current_wizard()
    socketio.start_background_task(run_submit, wizard, request.sid)


def run_submit(wizard, sid):
    """Background task: submit and report guard violations to the client"""
    try:
        wizard.submit()
    except TryOnError as e:
        socketio.emit('wizard_error', e.to_dict(), to=sid)


@socketio.on_error_default
def handle_socket_error(e):
    if isinstance(e, TryOnError):
        emit('wizard_error', e.to_dict())
    else:
        logger.exception("Socket event failed")
        emit('wizard_error', {'error': 'Internal server error'})


if __name__ == '__main__':
    settings = Settings.from_env()
    app = create_app(settings)

    print("🚀 Starting Virtual Try-On server with WebSocket support...")
    print(f"📱 API available at http://localhost:{settings.port}/api/upload")

    # Run with SocketIO
    socketio.run(app, debug=True, host='0.0.0.0', port=settings.port, allow_unsafe_werkzeug=True)
