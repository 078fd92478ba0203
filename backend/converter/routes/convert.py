"""
/convert endpoint for format conversion, resizing and recompression.
"""
from datetime import datetime, timezone
from flask import request, jsonify
from werkzeug.exceptions import BadRequest, RequestEntityTooLarge

from converter.utils.image_processing import convert
from converter.utils.metadata import is_valid_image
from converter.utils.validation import read_upload, parse_convert_options


def register_convert_route(app):
    """Register the /convert endpoint with the Flask app."""

    @app.route('/convert', methods=['POST'])
    def convert_image():
        """
        Convert an uploaded image to another format.

        Accepts multipart/form-data with:
        - file: File (image to convert)
        - format: str (jpeg, jpg, png, webp, avif or gif)
        - quality: int (optional, default 85)
        - width, height: int (optional, never enlarges)
        - fit: str (optional, cover/contain/fill/inside/outside, default inside)
        - optimize: bool (optional, default true)

        Returns JSON with the base64 encoded image and its metadata.
        """
        start_time = datetime.now(timezone.utc)

        try:
            # 1. Extract and validate form data
            is_valid, image_bytes, error_msg = read_upload(request.files)
            if not is_valid:
                raise BadRequest(error_msg)

            is_valid, options, error_msg = parse_convert_options(request.form)
            if not is_valid:
                raise BadRequest(error_msg)

            # 2. Validate image
            if not is_valid_image(image_bytes):
                raise BadRequest('Invalid image file')

            # 3. Convert
            result = convert(image_bytes, options)
            if not result.success:
                duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
                app.logger.error(f'Conversion failed: {result.error}', extra={
                    'endpoint': '/convert',
                    'format': options.target_format,
                    'duration_ms': duration_ms,
                    'status': 'error'
                })
                return jsonify({
                    'success': False,
                    'error': result.error or 'Conversion failed',
                    'error_code': 'CONVERSION_FAILED'
                }), 500

            # 4. Log completion
            duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
            app.logger.info('Request completed', extra={
                'endpoint': '/convert',
                'format': result.metadata.format,
                'original_size': result.metadata.original_size,
                'output_size': result.metadata.size,
                'duration_ms': duration_ms,
                'status': 'success'
            })

            return jsonify({
                'success': True,
                'result': {
                    'image': result.base64,
                    'metadata': result.metadata.to_dict()
                }
            }), 200

        except (BadRequest, RequestEntityTooLarge):
            # Re-raise HTTP exceptions
            raise

        except Exception as e:
            # Log and return 500 for unexpected errors
            duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
            app.logger.error(f'Request failed: {str(e)}', exc_info=True, extra={
                'endpoint': '/convert',
                'duration_ms': duration_ms,
                'status': 'error'
            })

            return jsonify({
                'success': False,
                'error': str(e),
                'error_code': 'INTERNAL_ERROR'
            }), 500
