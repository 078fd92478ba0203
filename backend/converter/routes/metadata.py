"""
/metadata endpoint for reading image information without conversion.
"""
from flask import request, jsonify
from werkzeug.exceptions import BadRequest, RequestEntityTooLarge

from converter.utils.errors import DecodeError
from converter.utils.metadata import read_metadata
from converter.utils.validation import read_upload


def register_metadata_route(app):
    """Register the /metadata endpoint with the Flask app."""

    @app.route('/metadata', methods=['POST'])
    def image_metadata():
        """
        Read format, dimensions and size of an uploaded image.

        Accepts multipart/form-data with:
        - file: File (image)

        Returns JSON with the image metadata.
        """
        try:
            is_valid, image_bytes, error_msg = read_upload(request.files)
            if not is_valid:
                raise BadRequest(error_msg)

            try:
                metadata = read_metadata(image_bytes)
            except DecodeError as e:
                app.logger.warning(f'Metadata read failed: {str(e)}', extra={'endpoint': '/metadata'})
                raise BadRequest('Failed to read image metadata')

            return jsonify({
                'success': True,
                'metadata': metadata.to_dict()
            }), 200

        except (BadRequest, RequestEntityTooLarge):
            raise

        except Exception as e:
            app.logger.error(f'Metadata request failed: {str(e)}', exc_info=True, extra={
                'endpoint': '/metadata',
                'status': 'error'
            })
            return jsonify({
                'success': False,
                'error': str(e),
                'error_code': 'INTERNAL_ERROR'
            }), 500
