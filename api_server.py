#!/usr/bin/env python3
"""
Spot the Difference API Server
Upload an image to get a puzzle, then send clicks until every difference is found.
"""

import os
import logging
import uuid
from io import BytesIO
from pathlib import Path
from typing import Dict
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

# Import services and models
from models.errors import InvalidInputError
from models.game_state import ClickOutcome
from services.image_service import ImageService
from services.overlay_service import OverlayService
from services.game_session import GameSession
from pipeline.puzzle_generator import generate_puzzle, make_rng

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "data/temp_uploads")
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif,bmp,webp").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "20")) * 1024 * 1024
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "100"))

app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Ensure directories exist
Path(UPLOAD_FOLDER).mkdir(parents=True, exist_ok=True)

# Initialize services
image_service = ImageService()
overlay_service = OverlayService()

logger = logging.getLogger(__name__)

# One puzzle per session id; a session is only registered once generation has finished
sessions: Dict[str, GameSession] = {}


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def get_session(payload: dict):
    """Look up the session named in a JSON payload; None if missing or unknown."""
    session_id = (payload or {}).get('session_id')
    if not session_id or session_id not in sessions:
        return None
    return sessions[session_id]


def register_session(session: GameSession) -> None:
    """Store a finished puzzle, evicting the oldest ones beyond MAX_SESSIONS."""
    sessions[session.session_id] = session
    while len(sessions) > MAX_SESSIONS:
        oldest_id = next(iter(sessions))
        del sessions[oldest_id]
        logger.info(f"Evicted session {oldest_id}")


def session_response(session: GameSession, **extra) -> dict:
    body = {'success': True}
    body.update(session.to_dict())
    body.update(extra)
    return body


@app.route('/api/generate-puzzle', methods=['POST'])
def generate_puzzle_step():
    """Upload an image and build a new puzzle from it."""
    try:
        if 'image' not in request.files:
            return jsonify({'success': False, 'message': 'No image provided'}), 400

        file = request.files['image']
        if file.filename == '':
            return jsonify({'success': False, 'message': 'No file selected'}), 400
        if not allowed_file(file.filename):
            return jsonify({'success': False, 'message': 'File type not allowed'}), 400

        seed = request.form.get('seed')
        if seed not in (None, '') and not seed.isdigit():
            return jsonify({'success': False, 'message': 'Seed must be a non-negative integer'}), 400
        rng = make_rng(int(seed)) if seed not in (None, '') else make_rng()

        # A new upload replaces the caller's previous puzzle
        previous_id = request.form.get('session_id')
        if previous_id:
            sessions.pop(previous_id, None)

        # Save uploaded file temporarily
        filename = secure_filename(file.filename)
        temp_path = Path(UPLOAD_FOLDER) / f"upload_{uuid.uuid4().hex}_{filename}"
        file.save(str(temp_path))

        try:
            image = image_service.load(str(temp_path))
            logger.info(f"Puzzle image loaded: {image.pixels.shape}")
            session = generate_puzzle(image, rng=rng)
        finally:
            # Clean up temp file
            if temp_path.exists():
                temp_path.unlink()

        register_session(session)
        logger.info(f"Session {session.session_id}: {len(session.regions)} differences")

        return jsonify(session_response(
            session,
            original=image_service.to_base64(session.original),
            modified=image_service.to_base64(session.modified),
        ))

    except InvalidInputError as e:
        logger.warning(f"Rejected puzzle image: {e}")
        return jsonify({'success': False, 'message': str(e)}), 400
    except (FileNotFoundError, ValueError) as e:
        logger.warning(f"Unreadable puzzle image: {e}")
        return jsonify({'success': False, 'message': 'Could not read the uploaded image'}), 400
    except Exception as e:
        logger.error(f"Puzzle generation error: {e}")
        return jsonify({'success': False, 'message': f'Error generating puzzle: {str(e)}'}), 500


@app.route('/api/click', methods=['POST'])
def click_step():
    """Register one click in image pixel coordinates."""
    try:
        payload = request.get_json(silent=True) or {}
        session = get_session(payload)
        if session is None:
            return jsonify({'success': False, 'message': 'Invalid session'}), 400

        try:
            x = float(payload['x'])
            y = float(payload['y'])
        except (KeyError, TypeError, ValueError):
            return jsonify({'success': False, 'message': 'Click needs numeric x and y'}), 400

        result = session.register_click(x, y)
        return jsonify(session_response(
            session,
            outcome=result.outcome.value,
            region=result.region.as_dict() if result.outcome is ClickOutcome.HIT else None,
        ))

    except Exception as e:
        logger.error(f"Click error: {e}")
        return jsonify({'success': False, 'message': f'Error registering click: {str(e)}'}), 500


@app.route('/api/reveal-all', methods=['POST'])
def reveal_all_step():
    """Give up: mark every remaining difference as found."""
    try:
        session = get_session(request.get_json(silent=True))
        if session is None:
            return jsonify({'success': False, 'message': 'Invalid session'}), 400

        revealed = session.reveal_all()
        logger.info(f"Session {session.session_id}: revealed {len(revealed)} differences")
        return jsonify(session_response(session, revealed=[region.as_dict() for region in revealed]))

    except Exception as e:
        logger.error(f"Reveal error: {e}")
        return jsonify({'success': False, 'message': f'Error revealing differences: {str(e)}'}), 500


@app.route('/api/session/<session_id>', methods=['GET'])
def session_state(session_id):
    """Current progress of a puzzle."""
    session = sessions.get(session_id)
    if session is None:
        return jsonify({'success': False, 'message': 'Session not found'}), 404
    return jsonify(session_response(session))


@app.route('/api/session/<session_id>/overlay/<which>', methods=['GET'])
def session_overlay(session_id, which):
    """PNG of the original or modified image with circles around the found differences."""
    try:
        session = sessions.get(session_id)
        if session is None:
            return jsonify({'error': 'Session not found'}), 404
        if which not in ('original', 'modified'):
            return jsonify({'error': 'Image not found'}), 404

        base = session.original if which == 'original' else session.modified
        marked = overlay_service.draw_markers(base, session.regions)
        return send_file(BytesIO(image_service.to_png_bytes(marked)), mimetype='image/png')
    except Exception as e:
        logger.error(f"Error rendering overlay for {session_id}: {e}")
        return jsonify({'error': 'Error serving image'}), 500


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Spot the Difference API is running',
        'active_sessions': len(sessions)
    })


@app.route('/api/clear-session', methods=['POST'])
def clear_session():
    """Clear a session and free memory."""
    try:
        session_id = (request.get_json(silent=True) or {}).get('session_id')
        if session_id and session_id in sessions:
            del sessions[session_id]
            return jsonify({'success': True, 'message': 'Session cleared'})
        else:
            return jsonify({'success': False, 'message': 'Session not found'})
    except Exception as e:
        logger.error(f"Error clearing session: {e}")
        return jsonify({'success': False, 'message': 'Error clearing session'}), 500


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.errorhandler(400)
def bad_request(e):
    """Handle bad request error."""
    return jsonify({'error': 'Bad request'}), 400


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


if __name__ == '__main__':
    print("🚀 Starting Spot the Difference API Server...")
    print(f"📁 Upload directory: {UPLOAD_FOLDER}")
    print(f"🔧 Max upload size: {MAX_CONTENT_LENGTH // (1024*1024)}MB")
    print("🌐 CORS enabled for frontend communication")
    print("📋 Endpoints:")
    print("   1. /api/generate-puzzle")
    print("   2. /api/click")
    print("   3. /api/reveal-all")
    print("   4. /api/session/<id>")
    print("="*60)

    # Single-threaded: sessions are plain in-memory objects
    app.run(debug=False, host="0.0.0.0", port=int(os.getenv("API_SERVER_PORT", "5002")), threaded=False)
