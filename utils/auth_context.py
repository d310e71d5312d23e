from flask import g

from models import db
from models.staff import Staff
from security.session import get_session_from_request


def load_current_staff():
    sess = get_session_from_request()
    g.session = sess
    g.staff = None
    if sess:
        staff = db.session.get(Staff, sess.staff_id)
        if staff is not None and staff.is_active:
            g.staff = staff
