"""
Cash-flow Review Dashboard

A Flask-based tool for reviewing transaction classification and the resulting
cash-flow snapshot. Uploaded Plaid exports are run through the analysis
engine and returned with the deciding rule for every transaction, so
misclassifications and low-confidence items can be spotted and exported.

This tool is read-only and does NOT modify any classification logic.
"""

import json
import logging
import os
from datetime import datetime
from typing import List, Dict, Any
from collections import defaultdict
import csv
import io

from flask import Flask, request, jsonify, send_file
from werkzeug.utils import secure_filename

from analysis_batch_processor import AnalysisBatchProcessor, FileAnalysisResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 500 * 1024 * 1024  # 500MB max file size

processor = AnalysisBatchProcessor()

EXPORT_FIELDS = [
    'file', 'transaction_id', 'date', 'name', 'merchant_name', 'amount',
    'pfc_primary', 'pfc_detailed', 'confidence_level', 'bucket', 'rule',
    'reason', 'is_essential', 'is_discretionary', 'needs_validation',
]


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ('json', 'zip')


def transaction_rows(filename: str, content: bytes, result: FileAnalysisResult) -> List[Dict[str, Any]]:
    """
    Pair each raw transaction with its classification.

    Args:
        filename: Upload file name
        content: Raw upload bytes
        result: Analysis of the same upload

    Returns:
        One dict per transaction, keyed by ``EXPORT_FIELDS``
    """
    data = processor.decode_content(content)
    _, raw_transactions = processor.normalize_json_structure(data, filename)

    rows = []
    for raw, classification in zip(raw_transactions, result.classifications):
        pfc = raw.get('personal_finance_category') or {}
        rows.append({
            'file': filename,
            'transaction_id': classification.transaction_id,
            'date': raw.get('date', ''),
            'name': raw.get('name', ''),
            'merchant_name': raw.get('merchant_name') or '',
            'amount': raw.get('amount', 0),
            'pfc_primary': pfc.get('primary', ''),
            'pfc_detailed': pfc.get('detailed', ''),
            'confidence_level': classification.confidence_level.value,
            'bucket': classification.bucket.value,
            'rule': classification.rule,
            'reason': classification.reason,
            'is_essential': classification.is_essential,
            'is_discretionary': classification.is_discretionary,
            'needs_validation': classification.needs_validation,
        })
    return rows


def generate_summary(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Aggregate counts over classified transaction rows.

    Args:
        rows: Rows from ``transaction_rows``

    Returns:
        Dictionary with summary statistics
    """
    summary = {
        'total_transactions': len(rows),
        'by_bucket': defaultdict(int),
        'by_rule': defaultdict(int),
        'by_confidence_level': defaultdict(int),
        'essential_count': 0,
        'discretionary_count': 0,
        'needs_review': [],
    }

    for row in rows:
        summary['by_bucket'][row['bucket']] += 1
        summary['by_rule'][row['rule']] += 1
        summary['by_confidence_level'][row['confidence_level']] += 1
        if row['is_essential']:
            summary['essential_count'] += 1
        if row['is_discretionary']:
            summary['discretionary_count'] += 1
        if row['needs_validation']:
            summary['needs_review'].append({
                'transaction_id': row['transaction_id'],
                'name': row['name'],
                'amount': row['amount'],
                'bucket': row['bucket'],
                'rule': row['rule'],
            })

    # Convert defaultdicts to regular dicts for JSON serialization
    summary['by_bucket'] = dict(summary['by_bucket'])
    summary['by_rule'] = dict(summary['by_rule'])
    summary['by_confidence_level'] = dict(summary['by_confidence_level'])

    return summary


def paycheck_payload(result: FileAnalysisResult) -> Dict[str, Any]:
    detection = result.paycheck
    schedule = detection.schedule
    payload = {
        'detected': detection.was_detected,
        'message': detection.message,
        'confidence': detection.confidence.value if detection.confidence else None,
    }
    if schedule is not None:
        payload.update({
            'frequency': schedule.frequency.value,
            'estimated_amount': schedule.estimated_amount,
            'anchor_days': list(schedule.anchor_days),
            'description': schedule.description,
        })
    return payload


@app.route('/')
def index():
    """Describe the available endpoints."""
    return jsonify({
        'name': 'Cash-flow Review Dashboard',
        'endpoints': {
            'POST /upload': "Analyse Plaid JSON or ZIP uploads (form field 'files')",
            'POST /export/csv': "Export transaction rows as CSV (JSON body with 'results')",
            'POST /export/json': "Export transaction rows as JSON (JSON body with 'results')",
        },
    })


@app.route('/upload', methods=['POST'])
def upload_files():
    """
    Handle multiple file uploads and analyse them.

    Returns JSON with per-file snapshots, classified transactions and summary
    statistics.
    """
    if 'files' not in request.files:
        return jsonify({'error': 'No files provided'}), 400

    files = request.files.getlist('files')

    if not files or all(f.filename == '' for f in files):
        return jsonify({'error': 'No files selected'}), 400

    all_rows = []
    file_summaries = []
    errors = []

    for file in files:
        if not (file and file.filename):
            continue
        if not allowed_file(file.filename):
            errors.append({
                'filename': file.filename,
                'error': 'Invalid file type. Only JSON and ZIP files are allowed.'
            })
            continue

        filename = secure_filename(file.filename)
        for name, content in processor.expand_upload(filename, file.read()):
            batch = processor.process_batch([(name, content)])
            for error in batch.errors:
                errors.append({'filename': error.file_name, 'error': error.error_message})
            if not batch.results:
                continue

            result = batch.results[0]
            rows = transaction_rows(name, content, result)
            all_rows.extend(rows)
            file_summaries.append({
                'filename': name,
                'transaction_count': len(rows),
                'snapshot': result.summary,
                'paycheck': paycheck_payload(result),
                'status': 'success',
            })

    if not all_rows and errors:
        return jsonify({'error': 'All files failed to process', 'details': errors}), 400

    response = {
        'success': True,
        'files_processed': len(file_summaries),
        'file_summaries': file_summaries,
        'total_transactions': len(all_rows),
        'results': all_rows,
        'summary': generate_summary(all_rows),
        'errors': errors if errors else None,
    }

    return jsonify(response)


def _results_from_request():
    data = request.get_json(silent=True)
    if not data or 'results' not in data:
        return None, (jsonify({'error': 'No results provided'}), 400)
    results = data['results']
    if not isinstance(results, list):
        app.logger.error("Export: results is not a list, got %s", type(results))
        return None, (jsonify({'error': 'Results must be an array'}), 400)
    return results, None


@app.route('/export/csv', methods=['POST'])
def export_csv():
    """
    Export transaction rows to CSV format.

    Expects JSON body with 'results' field containing transaction rows.
    """
    results, error_response = _results_from_request()
    if error_response:
        app.logger.warning("CSV export: No usable results in request")
        return error_response

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS, restval='', extrasaction='ignore')
    writer.writeheader()
    for row in results:
        writer.writerow(row)

    csv_data = output.getvalue().encode('utf-8')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    app.logger.info("CSV export: Successfully exported %d results", len(results))

    return send_file(
        io.BytesIO(csv_data),
        mimetype='text/csv',
        as_attachment=True,
        download_name=f'cashflow_results_{timestamp}.csv'
    )


@app.route('/export/json', methods=['POST'])
def export_json():
    """
    Export transaction rows to JSON format.

    Expects JSON body with 'results' field containing transaction rows.
    """
    results, error_response = _results_from_request()
    if error_response:
        app.logger.warning("JSON export: No usable results in request")
        return error_response

    json_data = json.dumps(results, indent=2).encode('utf-8')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    app.logger.info("JSON export: Successfully exported %d results", len(results))

    return send_file(
        io.BytesIO(json_data),
        mimetype='application/json',
        as_attachment=True,
        download_name=f'cashflow_results_{timestamp}.json'
    )


if __name__ == '__main__':
    print("=" * 80)
    print("Cash-flow Review Dashboard")
    print("=" * 80)
    print("\nStarting dashboard on http://localhost:5001")
    print("\nPress Ctrl+C to stop the server.")
    print("=" * 80)

    # Set FLASK_DEBUG=1 only in development environments
    debug_mode = os.environ.get('FLASK_DEBUG', '0') == '1'
    app.run(debug=debug_mode, port=5001, host='0.0.0.0')
