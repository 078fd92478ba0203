"""
/preview endpoint returning browser-displayable previews of uploaded images.
"""
from datetime import datetime, timezone
from flask import request, jsonify
from werkzeug.exceptions import BadRequest, RequestEntityTooLarge

from converter.utils.errors import EncodeError, InvalidImageError
from converter.utils.preview import decide_preview
from converter.utils.validation import read_upload, parse_preview_options


def register_preview_route(app):
    """Register the /preview endpoint with the Flask app."""

    @app.route('/preview', methods=['POST'])
    def preview():
        """
        Convert an image (typically HEIC) to a JPEG preview.

        Safari displays HEIC natively, so with detectBrowser enabled a HEIC
        upload from Safari is returned unchanged.

        Accepts multipart/form-data with:
        - file: File (image)
        - quality: int (optional, default 75)
        - maxWidth: int (optional, default 1920)
        - maxHeight: int (optional, default 1080)
        - detectBrowser: bool (optional, default false)

        Returns JSON with the base64 image, its metadata, whether it was
        converted and, with detectBrowser, the detected browser.
        """
        start_time = datetime.now(timezone.utc)

        try:
            is_valid, image_bytes, error_msg = read_upload(request.files)
            if not is_valid:
                raise BadRequest(error_msg)

            is_valid, options, error_msg = parse_preview_options(request.form)
            if not is_valid:
                raise BadRequest(error_msg)

            user_agent = request.headers.get('User-Agent', '') if options.detect_browser else None

            try:
                decision = decide_preview(image_bytes, options, user_agent)
            except InvalidImageError as e:
                raise BadRequest(str(e))
            except EncodeError as e:
                app.logger.error(f'Preview conversion failed: {str(e)}', extra={
                    'endpoint': '/preview',
                    'status': 'error'
                })
                return jsonify({
                    'success': False,
                    'error': str(e),
                    'error_code': 'CONVERSION_FAILED'
                }), 500

            result = {
                'image': decision.base64,
                'metadata': decision.metadata.to_dict(),
                'converted': decision.converted
            }
            if decision.browser is not None:
                result['browser'] = decision.browser

            duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
            app.logger.info('Request completed', extra={
                'endpoint': '/preview',
                'converted': decision.converted,
                'browser': decision.browser,
                'duration_ms': duration_ms,
                'status': 'success'
            })

            return jsonify({
                'success': True,
                'result': result
            }), 200

        except (BadRequest, RequestEntityTooLarge):
            raise

        except Exception as e:
            duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
            app.logger.error(f'Request failed: {str(e)}', exc_info=True, extra={
                'endpoint': '/preview',
                'duration_ms': duration_ms,
                'status': 'error'
            })
            return jsonify({
                'success': False,
                'error': str(e),
                'error_code': 'INTERNAL_ERROR'
            }), 500
