"""
Main Flask application with configuration, logging, and error handlers.
"""
import os
import json
import logging
from datetime import datetime, timezone
from flask import Flask, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Configuration class to load environment variables."""

    FLASK_ENV = os.getenv('FLASK_ENV', 'production')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    MAX_IMAGE_SIZE = int(os.getenv('MAX_IMAGE_SIZE', 10 * 1024 * 1024))  # 10MB default
    MAX_CONTENT_LENGTH = MAX_IMAGE_SIZE
    API_VERSION = os.getenv('API_VERSION', '1.0.0')


LOG_EXTRA_FIELDS = (
    'endpoint',
    'duration_ms',
    'status',
    'format',
    'original_size',
    'output_size',
    'browser',
    'converted',
)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record):
        log_data = {
            'timestamp': utc_timestamp(),
            'level': record.levelname,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        for field in LOG_EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        # Add exception info if present
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(app):
    """Set up JSON logging for the application and the converter package."""
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())

    log_level = getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)
    handler.setLevel(log_level)

    for logger in (app.logger, logging.getLogger('converter')):
        # Remove default handlers
        logger.handlers.clear()
        logger.setLevel(log_level)
        logger.addHandler(handler)
        # Prevent propagation to avoid duplicate logs
        logger.propagate = False


def create_app():
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(Config)

    # Set up JSON logging
    setup_logging(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CORS headers
    register_cors(app)

    # Register routes
    register_routes(app)

    app.logger.info(f'Flask application initialized (env={Config.FLASK_ENV}, log_level={Config.LOG_LEVEL})')

    return app


def error_response(message, error_code, status_code):
    """Build the JSON error body shared by all endpoints."""
    return jsonify({
        'success': False,
        'error': message,
        'error_code': error_code
    }), status_code


def register_error_handlers(app):
    """Register error handlers for common HTTP status codes."""

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        app.logger.warning(f'Bad request: {str(error)}')
        message = error.description if hasattr(error, 'description') else 'Invalid request data'
        return error_response(message, 'BAD_REQUEST', 400)

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        app.logger.warning(f'Resource not found: {request.path}')
        return error_response('Not found', 'NOT_FOUND', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 Method Not Allowed errors."""
        allowed = [m for m in (getattr(error, 'valid_methods', None) or []) if m not in ('OPTIONS', 'HEAD')]
        method = allowed[0] if len(allowed) == 1 else 'POST'
        app.logger.warning(f'Method not allowed: {request.method} {request.path}')
        response, status_code = error_response(f'Method not allowed. Use {method}.', 'METHOD_NOT_ALLOWED', 405)
        if allowed:
            response.headers['Allow'] = ', '.join(sorted(set(allowed) | {'OPTIONS'}))
        return response, status_code

    @app.errorhandler(413)
    def request_entity_too_large(error):
        """Handle 413 Request Entity Too Large errors."""
        app.logger.warning(f'Request too large: {str(error)}')
        return error_response(
            f'Image exceeds maximum size of {app.config["MAX_IMAGE_SIZE"]} bytes',
            'IMAGE_TOO_LARGE',
            413
        )

    @app.errorhandler(500)
    def internal_server_error(error):
        """Handle 500 Internal Server Error."""
        original = getattr(error, 'original_exception', None) or error
        app.logger.error(f'Internal server error: {str(original)}', exc_info=True)
        message = str(original) if original is not error else 'Internal server error'
        return error_response(message, 'INTERNAL_ERROR', 500)


def register_cors(app):
    """Allow cross-origin requests on every endpoint."""
    CORS(
        app,
        resources={
            r'/health': {'methods': ['GET', 'OPTIONS']},
            r'/*': {'methods': ['POST', 'OPTIONS']},
        },
        allow_headers=['Content-Type', 'User-Agent'],
        send_wildcard=True
    )


def register_routes(app):
    """Register application routes."""

    from converter.routes.convert import register_convert_route
    register_convert_route(app)

    from converter.routes.metadata import register_metadata_route
    register_metadata_route(app)

    from converter.routes.preview import register_preview_route
    register_preview_route(app)

    @app.route('/health', methods=['GET'])
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'ok',
            'message': 'Image Converter API is running',
            'version': app.config['API_VERSION'],
            'timestamp': utc_timestamp()
        }), 200


# Create the Flask app instance
app = create_app()


if __name__ == '__main__':
    # For local development only
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port, debug=(Config.FLASK_ENV != 'production'))
