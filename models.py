from extensions import db
from datetime import datetime, timezone

# Note: The db instance is created in extensions.py
# and initialized in the app factory to avoid circular imports.


def _utcnow():
    return datetime.now(timezone.utc)


class InterviewRecord(db.Model):
    """Durable copy of an ended interview session."""
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(64), nullable=False, unique=True)
    client_id = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    custom_category = db.Column(db.String(100), nullable=True)
    ai_generated = db.Column(db.Boolean, nullable=False, default=False)
    average_score = db.Column(db.Float, nullable=True)
    started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    ended_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    # One-to-many relationship with the ResultRecord model
    results = db.relationship('ResultRecord', backref='interview', lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f'<InterviewRecord {self.session_id} ({self.category})>'


class ResultRecord(db.Model):
    """A single scored answer within an archived interview."""
    id = db.Column(db.Integer, primary_key=True)
    analysis_id = db.Column(db.String(64), nullable=False)
    question_id = db.Column(db.String(100), nullable=False)
    question = db.Column(db.Text, nullable=True)
    answer = db.Column(db.Text, nullable=False)
    understanding = db.Column(db.Integer, nullable=False)
    logic = db.Column(db.Integer, nullable=False)
    specificity = db.Column(db.Integer, nullable=False)
    job_fit = db.Column(db.Integer, nullable=False)
    total_score = db.Column(db.Integer, nullable=False)
    ai_generated = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    interview_id = db.Column(db.Integer, db.ForeignKey('interview_record.id'), nullable=False)

    def __repr__(self):
        return f'<ResultRecord {self.analysis_id} for Interview {self.interview_id}>'


def archive_session(session, database=db):
    """Write an ended session and its results. Caller handles rollback."""
    record = InterviewRecord(
        session_id=session.session_id,
        client_id=session.client_id,
        category=session.category,
        custom_category=session.custom_category,
        ai_generated=session.ai_generated,
        average_score=session.average_score(),
        started_at=session.created_at,
    )
    database.session.add(record)
    database.session.flush()  # Use flush to get the ID for the new record

    for result in session.results:
        question = session.find_question(result.question_id)
        database.session.add(ResultRecord(
            interview_id=record.id,
            analysis_id=result.id,
            question_id=result.question_id,
            question=question.question if question else None,
            answer=result.answer,
            understanding=result.scores.understanding,
            logic=result.scores.logic,
            specificity=result.scores.specificity,
            job_fit=result.scores.job_fit,
            total_score=result.total_score,
            ai_generated=result.ai_generated,
            created_at=result.created_at,
        ))
    database.session.commit()
    return record
