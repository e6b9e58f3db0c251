from taskapi.src.extensions import db
from taskapi.src.utils.clock import utcnow

DEFAULT_TASK_STATE = 'active'


class Task(db.Model):
    """
    Task Model - Represents a single task owned by exactly one user.

    Fields:
        - id: Primary key (auto-generated, also the listing order)
        - name: Task name (required)
        - state: Free-form state text (defaults to "active")
        - owner_id: User ID of the owner (required, foreign key)
        - created_at: Timestamp of task creation (auto-generated)
        - updated_at: Timestamp of last update (auto-updated)
    """
    __tablename__ = 'tasks'

    # Primary Key
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    name = db.Column(db.String(255), nullable=False)

    # No enumerated values, any non-empty text is accepted
    state = db.Column(
        db.String(255),
        nullable=False,
        default=DEFAULT_TASK_STATE
    )

    owner_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),  # If owner deleted, delete tasks
        nullable=False,  # Every task must have an owner
        index=True  # Listing always filters by owner
    )

    # Timestamp Fields (automatically managed)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship('User', back_populates='tasks')

    def to_dict(self):
        """
        Convert Task object to dictionary for JSON serialization.

        Returns:
            dict: Dictionary representation of the task
        """
        return {
            'id': self.id,
            'name': self.name,
            'state': self.state,
            'owner_id': self.owner_id,
            'created_at': self.created_at.isoformat(),  # ISO 8601 format
            'updated_at': self.updated_at.isoformat()
        }

    def __repr__(self):
        """String representation for debugging"""
        return f'<Task {self.id}: {self.name} ({self.state})>'
