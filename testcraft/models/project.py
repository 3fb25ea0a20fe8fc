"""Organization and Project domain models.

Organizations own projects; membership in an organization grants read access
to every project it owns. Membership management itself lives in the CRUD
service and is only read here by the project access gate.
"""

from datetime import datetime, timezone

from testcraft.models import db



class Organization(db.Model):
    """Top-level tenant owning projects and members."""

    __tablename__ = "organizations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    projects = db.relationship("Project", backref="organization", lazy="dynamic")
    members = db.relationship(
        "OrganizationMember", backref="organization", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Organization {self.id}: {self.name}>"


class OrganizationMember(db.Model):
    """User membership in an organization, with a role."""

    __tablename__ = "organization_members"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id = db.Column(db.Integer, nullable=False, index=True)
    role = db.Column(
        db.String(30), nullable=False, default="QA_ENGINEER",
        comment="ORGANIZATION_MANAGER | PROJECT_MANAGER | PRODUCT_OWNER | QA_ENGINEER | DEVELOPER",
    )
    joined_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("organization_id", "user_id", name="uq_org_member"),
    )

    def __repr__(self):
        return f"<OrganizationMember org#{self.organization_id} user#{self.user_id} [{self.role}]>"


class Project(db.Model):
    """A test project; every report is scoped to exactly one project."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    test_cases = db.relationship("TestCase", backref="project", lazy="dynamic")

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"
