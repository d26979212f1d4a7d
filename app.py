import io
import os
import logging
import uuid
from collections import OrderedDict
from functools import wraps

from flask import Flask, request, jsonify, send_file, session, Response
from werkzeug.utils import secure_filename

import early_warning
from chatbot import ChatSession
from cohort_stats import quality_indicators, status_distribution, summarize
from errors import ErpError, NotFound, ValidationError
from export_handler import ExportHandler
from fee_ledger import FeeLedger
from grading import projected_gpa
from hostel_ledger import hostel_ledger
from models import ROLES, ROLE_ADMIN, ROLE_FACULTY, ROLE_STUDENT, ROOMS, STUDENTS, TRANSACTIONS
import pdf_reports
from storage import get_store, close_store, init_store
from students import admit_student, find_student, import_students, mark_absent, update_student

# Set up logging
logging.basicConfig(level=logging.DEBUG)

app = Flask(__name__)
app.secret_key = os.environ.get("SESSION_SECRET", "dev-secret-key-change-in-production")

# Configuration
UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'uploads')
EXPORT_FOLDER = os.environ.get('EXPORT_FOLDER', 'exports')
ALLOWED_EXTENSIONS = {'xlsx', 'xls'}

app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
app.config['EXPORT_FOLDER'] = EXPORT_FOLDER
app.config['DATABASE'] = os.environ.get('TENACITY_DATABASE', 'tenacity.db')
app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024  # 16MB max file size

# Ensure directories exist
os.makedirs(UPLOAD_FOLDER, exist_ok=True)
os.makedirs(EXPORT_FOLDER, exist_ok=True)

# Initialize storage
with app.app_context():
    init_store()

# Chat transcripts keyed by the id kept in the user's session, least recently used first
CHAT_SESSIONS = OrderedDict()
app.config['MAX_CHAT_SESSIONS'] = int(os.environ.get('MAX_CHAT_SESSIONS', 500))


@app.teardown_appcontext
def teardown_store(exception):
    close_store()


@app.errorhandler(ErpError)
def handle_erp_error(error):
    return jsonify(error.to_dict()), error.status_code


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def payload():
    """Request fields from either a JSON body or a submitted form"""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def role_required(*roles):
    """Reject the request unless the selected role is one of roles."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            role = session.get('role')
            if role not in roles:
                return jsonify({
                    'error': f"This action requires one of: {', '.join(roles)}",
                    'type': 'Forbidden',
                }), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator


def can_view_student(student_id):
    role = session.get('role')
    if role in (ROLE_FACULTY, ROLE_ADMIN):
        return True
    return role == ROLE_STUDENT and session.get('student_id') == student_id


def save(name, records):
    """Save a collection; a failed save is logged by the store and reported as a warning"""
    if get_store().save(name, records):
        return None
    return f"Changes to {name} could not be saved and will be lost on restart"


def respond(body, warning=None, status=200):
    if warning:
        body['warning'] = warning
    return jsonify(body), status


def chat_session_for_user():
    """Return this user's chat session, evicting the least recently used beyond MAX_CHAT_SESSIONS"""
    chat_id = session.get('chat_id')
    if chat_id in CHAT_SESSIONS:
        CHAT_SESSIONS.move_to_end(chat_id)
        return CHAT_SESSIONS[chat_id]

    chat_id = uuid.uuid4().hex
    session['chat_id'] = chat_id
    CHAT_SESSIONS[chat_id] = ChatSession()
    while len(CHAT_SESSIONS) > app.config['MAX_CHAT_SESSIONS']:
        CHAT_SESSIONS.popitem(last=False)
    return CHAT_SESSIONS[chat_id]


def drop_chat_session():
    CHAT_SESSIONS.pop(session.get('chat_id'), None)


@app.route('/')
def index():
    store = get_store()
    return jsonify({
        'role': session.get('role'),
        'student_id': session.get('student_id'),
        'student_count': len(store.load(STUDENTS)),
        'room_count': len(store.load(ROOMS)),
        'transaction_count': len(store.load(TRANSACTIONS)),
    })


@app.route('/select_role', methods=['POST'])
def select_role():
    data = payload()
    role = (data.get('role') or '').strip()

    if role not in ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")

    drop_chat_session()
    session.clear()
    session['role'] = role

    if role == ROLE_STUDENT:
        student_id = (data.get('student_id') or '').strip()
        if not student_id:
            session.clear()
            raise ValidationError("Student role requires a student id")
        try:
            find_student(get_store().load(STUDENTS), student_id)
        except NotFound:
            session.clear()
            raise
        session['student_id'] = student_id

    return jsonify({'role': role, 'student_id': session.get('student_id')})


@app.route('/logout', methods=['POST'])
def logout():
    drop_chat_session()
    session.clear()
    return jsonify({'role': None})


@app.route('/students')
@role_required(ROLE_FACULTY, ROLE_ADMIN)
def list_students():
    students = get_store().load(STUDENTS)
    return jsonify([
        dict(student, indicators=early_warning.evaluate(student))
        for student in students
    ])


@app.route('/students/<student_id>')
def get_student(student_id):
    if not can_view_student(student_id):
        return jsonify({'error': 'You can only view your own record', 'type': 'Forbidden'}), 403

    store = get_store()
    student = find_student(store.load(STUDENTS), student_id)
    ledger = FeeLedger(store.load(TRANSACTIONS))
    room = hostel_ledger.find_room_of(store.load(ROOMS), student_id)

    return jsonify({
        'student': student,
        'indicators': early_warning.evaluate(student),
        'room_id': room['id'] if room else None,
        'transactions': ledger.transactions_for(student_id),
        'total_paid': ledger.total_for(student_id),
    })


@app.route('/students', methods=['POST'])
@role_required(ROLE_ADMIN)
def add_student():
    data = payload()
    store = get_store()

    with store.locked(STUDENTS):
        students, student = admit_student(
            store.load(STUDENTS),
            data.get('name'),
            data.get('attendance'),
            data.get('marks'),
            student_id=(data.get('id') or '').strip() or None,
        )
        warning = save(STUDENTS, students)

    return respond({'student': student}, warning, 201)


@app.route('/students/<student_id>/update', methods=['POST'])
@role_required(ROLE_FACULTY)
def edit_student(student_id):
    data = payload()
    store = get_store()

    with store.locked(STUDENTS):
        students, student = update_student(
            store.load(STUDENTS),
            student_id,
            marks=data.get('marks'),
            attendance=data.get('attendance'),
            note=data.get('note'),
            achievement=data.get('achievement'),
            certificate=data.get('certificate'),
        )
        warning = save(STUDENTS, students)

    return respond({'student': student, 'indicators': early_warning.evaluate(student)}, warning)


@app.route('/students/<student_id>/absent', methods=['POST'])
@role_required(ROLE_FACULTY)
def mark_student_absent(student_id):
    store = get_store()

    with store.locked(STUDENTS):
        students, student = mark_absent(store.load(STUDENTS), student_id)
        warning = save(STUDENTS, students)

    return respond({'student': student, 'indicators': early_warning.evaluate(student)}, warning)


@app.route('/upload_students', methods=['POST'])
@role_required(ROLE_ADMIN)
def upload_students():
    if 'file' not in request.files or request.files['file'].filename == '':
        raise ValidationError('No file selected')

    file = request.files['file']
    if not allowed_file(file.filename):
        raise ValidationError('Invalid file type. Please upload an Excel file (.xlsx or .xls)')

    filename = secure_filename(file.filename)
    filepath = os.path.join(app.config['UPLOAD_FOLDER'], filename)
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    file.save(filepath)

    df = ExportHandler(app.config['EXPORT_FOLDER']).read_student_data(filepath)
    if df is None:
        raise ValidationError('Error processing Excel file. Please check the format.')

    store = get_store()
    with store.locked(STUDENTS):
        students, added, skipped = import_students(store.load(STUDENTS), df.to_dict('records'))
        warning = save(STUDENTS, students)

    return respond({'added': added, 'skipped': skipped}, warning)


@app.route('/cgpa/projection', methods=['POST'])
def cgpa_projection():
    data = request.get_json(silent=True) or {}
    try:
        current_gpa = float(data.get('current_gpa', 0))
        current_credits = float(data.get('current_credits', 0))
        subjects = data.get('subjects') or []
        result = projected_gpa(current_gpa, current_credits, subjects)
    except (TypeError, ValueError, KeyError) as e:
        raise ValidationError(f"Invalid projection input: {e}")
    return jsonify({'projected_gpa': round(result, 2)})


@app.route('/stats')
@role_required(ROLE_FACULTY, ROLE_ADMIN)
def stats():
    students = get_store().load(STUDENTS)
    if not students:
        return jsonify({'count': 0})

    summary = summarize(students)
    flagged = early_warning.flag_students(students)
    return jsonify({
        'summary': summary,
        'distribution': status_distribution(summary),
        'quality': quality_indicators(summary),
        'early_warnings': [
            {'student_id': student['id'], 'name': student['name'], 'indicators': indicators}
            for student, indicators in flagged
        ],
    })


@app.route('/fees')
@role_required(ROLE_ADMIN)
def list_fees():
    ledger = FeeLedger(get_store().load(TRANSACTIONS))
    return jsonify({
        'transactions': ledger.transactions,
        'total_collected': ledger.total_collected(),
    })


@app.route('/fees', methods=['POST'])
@role_required(ROLE_ADMIN)
def record_fee():
    data = payload()
    store = get_store()

    with store.locked(TRANSACTIONS):
        ledger = FeeLedger(store.load(TRANSACTIONS))
        transaction = ledger.record_payment(
            store.load(STUDENTS),
            (data.get('student_id') or '').strip(),
            data.get('amount'),
            date=data.get('date'),
            fee_type=data.get('fee_type') or 'tuition',
        )
        warning = save(TRANSACTIONS, ledger.transactions)

    return respond({'transaction': transaction}, warning, 201)


@app.route('/fees/<receipt_id>/receipt.pdf')
def fee_receipt(receipt_id):
    role = session.get('role')
    if role not in (ROLE_ADMIN, ROLE_STUDENT):
        return jsonify({'error': 'You can only download your own receipts', 'type': 'Forbidden'}), 403

    transaction = FeeLedger(get_store().load(TRANSACTIONS)).find_by_receipt(receipt_id)
    # Other students' receipts look the same as unknown ones
    if role == ROLE_STUDENT and session.get('student_id') != transaction['student_id']:
        raise NotFound(f"Receipt {receipt_id} not found")

    try:
        pdf = pdf_reports.fee_receipt(transaction)
    except Exception as e:
        logging.error(f"Error generating receipt: {str(e)}")
        return jsonify({'error': 'Error generating receipt', 'type': 'ExportError'}), 500

    return send_file(io.BytesIO(pdf), mimetype='application/pdf', as_attachment=True,
                     download_name=pdf_reports.receipt_filename(transaction))


@app.route('/hostel')
@role_required(ROLE_ADMIN)
def hostel():
    store = get_store()
    rooms = store.load(ROOMS)
    students = store.load(STUDENTS)

    violations = hostel_ledger.validate_rooms(rooms)
    for violation in violations:
        logging.warning(f"Hostel data: {violation}")

    return jsonify({
        'rooms': rooms,
        'summary': hostel_ledger.occupancy_summary(rooms),
        'unallocated_students': [
            {'id': s['id'], 'name': s['name']}
            for s in hostel_ledger.unallocated_students(students, rooms)
        ],
        'violations': violations,
    })


@app.route('/hostel/allocate', methods=['POST'])
@role_required(ROLE_ADMIN)
def allocate_room():
    data = payload()
    room_id = (data.get('room_id') or '').strip()
    student_id = (data.get('student_id') or '').strip()
    if not room_id or not student_id:
        raise ValidationError('Please select both a student and a room')

    store = get_store()
    with store.locked(ROOMS):
        rooms = hostel_ledger.allocate(store.load(ROOMS), room_id, student_id, store.load(STUDENTS))
        warning = save(ROOMS, rooms)

    room = next(r for r in rooms if r['id'] == room_id)
    return respond({'room': room}, warning)


@app.route('/hostel/deallocate', methods=['POST'])
@role_required(ROLE_ADMIN)
def deallocate_room():
    data = payload()
    room_id = (data.get('room_id') or '').strip()
    student_id = (data.get('student_id') or '').strip()

    store = get_store()
    with store.locked(ROOMS):
        rooms = hostel_ledger.deallocate(store.load(ROOMS), room_id, student_id)
        warning = save(ROOMS, rooms)

    room = next(r for r in rooms if r['id'] == room_id)
    return respond({'room': room}, warning)


@app.route('/export/students.csv')
@role_required(ROLE_FACULTY, ROLE_ADMIN)
def export_students_csv():
    handler = ExportHandler(app.config['EXPORT_FOLDER'])
    csv_content = handler.students_to_csv(get_store().load(STUDENTS))
    return Response(
        csv_content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={handler.csv_filename()}'},
    )


@app.route('/export/students.xlsx')
@role_required(ROLE_FACULTY, ROLE_ADMIN)
def export_students_excel():
    handler = ExportHandler(app.config['EXPORT_FOLDER'])
    filepath = handler.export_students_excel(get_store().load(STUDENTS))
    if not filepath or not os.path.exists(filepath):
        return jsonify({'error': 'Error exporting students', 'type': 'ExportError'}), 500
    return send_file(os.path.abspath(filepath), as_attachment=True,
                     download_name=os.path.basename(filepath))


@app.route('/students/<student_id>/portfolio.pdf')
def student_portfolio(student_id):
    if not can_view_student(student_id):
        return jsonify({'error': 'You can only view your own record', 'type': 'Forbidden'}), 403

    student = find_student(get_store().load(STUDENTS), student_id)
    try:
        pdf = pdf_reports.student_portfolio(student)
    except Exception as e:
        logging.error(f"Error generating portfolio: {str(e)}")
        return jsonify({'error': 'Error generating portfolio', 'type': 'ExportError'}), 500

    return send_file(io.BytesIO(pdf), mimetype='application/pdf', as_attachment=True,
                     download_name=pdf_reports.portfolio_filename(student))


@app.route('/reports/naac.pdf')
@role_required(ROLE_ADMIN)
def naac_report():
    store = get_store()
    students = store.load(STUDENTS)
    if not students:
        raise ValidationError('No students to report on')

    ledger = FeeLedger(store.load(TRANSACTIONS))
    occupancy = hostel_ledger.occupancy_summary(store.load(ROOMS))
    try:
        pdf = pdf_reports.institution_report(students, ledger.total_collected(), occupancy)
    except Exception as e:
        logging.error(f"Error generating report: {str(e)}")
        return jsonify({'error': 'Error generating report', 'type': 'ExportError'}), 500

    return send_file(io.BytesIO(pdf), mimetype='application/pdf', as_attachment=True,
                     download_name=pdf_reports.report_filename())


@app.route('/chat', methods=['POST'])
def chat():
    message = (payload().get('message') or '').strip()
    if not message:
        raise ValidationError('Message is required')

    chat_session = chat_session_for_user()
    reply = chat_session.ask(message)
    return jsonify({'reply': reply, 'transcript': chat_session.transcript})


@app.route('/reset', methods=['POST'])
@role_required(ROLE_ADMIN)
def reset_data():
    if not get_store().reset():
        return jsonify({'error': 'Failed to reset data', 'type': 'PersistenceFailure'}), 500
    return jsonify({'reset': True})


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000, debug=True)
