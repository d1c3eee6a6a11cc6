"""
Analysis routes
Translate, classify and analyze comments from an uploaded Excel workbook
"""
import logging
from io import BytesIO

from flask import Blueprint, abort, jsonify, request, send_file

from services.analysis_service import analysis_service
from services.exceptions import AIServiceUnavailableError, SpreadsheetFormatError
from utils.excel_utils import (
    XLSX_MIMETYPE,
    export_analysis_workbook,
    export_classification_workbook,
    export_translation_workbook,
    read_sheet_comments,
    result_filename,
)

logger = logging.getLogger(__name__)

analysis_bp = Blueprint('analysis', __name__)

ALLOWED_EXTENSIONS = ('.xlsx', '.xls')


def _read_upload():
    """Validate the uploaded workbook and read its comments"""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        abort(400, description='Please upload an Excel file')
    if not upload.filename.lower().endswith(ALLOWED_EXTENSIONS):
        abort(400, description='Only .xlsx and .xls files are supported')

    if not analysis_service.ai.is_available():
        raise AIServiceUnavailableError("GEMINI_API_KEY is not configured")

    rows = read_sheet_comments(BytesIO(upload.read()))
    if not rows:
        raise SpreadsheetFormatError("No comments found in the uploaded file")

    logger.info("Received %s with %d comments", upload.filename, len(rows))
    return upload.filename, rows


def _xlsx_response(content, filename):
    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename,
    )


@analysis_bp.route('/translate', methods=['POST'])
def translate():
    filename, rows = _read_upload()
    analysis_service.translate_comments(rows)
    return _xlsx_response(export_translation_workbook(rows), result_filename(filename, 'translated'))


@analysis_bp.route('/classify', methods=['POST'])
def classify():
    filename, rows = _read_upload()
    categories = analysis_service.classify_comments(rows)
    return _xlsx_response(export_classification_workbook(rows, categories),
                          result_filename(filename, 'classified'))


@analysis_bp.route('/analyze', methods=['POST'])
def analyze():
    """Full analysis, returned as JSON (default) or as a workbook with ``format=xlsx``"""
    output_format = (request.form.get('format') or request.args.get('format') or 'json').lower()
    if output_format not in ('json', 'xlsx'):
        abort(400, description='format must be json or xlsx')

    filename, rows = _read_upload()
    report = analysis_service.analyze_comments(rows)

    if output_format == 'xlsx':
        return _xlsx_response(export_analysis_workbook(report), result_filename(filename, 'analysis'))
    return jsonify(report.to_dict())
