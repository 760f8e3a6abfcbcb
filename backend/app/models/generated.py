from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Text, Time, UniqueConstraint, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Forms(Base):
    __tablename__ = 'forms'

    title = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    week_definitions = relationship('WeekDefinitions', back_populates='form', cascade='all, delete-orphan')
    reservation_rules = relationship('ReservationRules', back_populates='form', cascade='all, delete-orphan')
    closing_days = relationship('ClosingDays', back_populates='form', cascade='all, delete-orphan')
    slots = relationship('Slots', back_populates='form', cascade='all, delete-orphan')


class WeekDefinitions(Base):
    __tablename__ = 'week_definitions'
    __table_args__ = (
        UniqueConstraint('form_id', 'date_of_apply'),
    )

    form_id = Column(ForeignKey('forms.id', ondelete='CASCADE'), nullable=False)
    date_of_apply = Column(Date, nullable=False)
    id = Column(Integer, primary_key=True)

    form = relationship('Forms', back_populates='week_definitions')
    working_days = relationship(
        'WorkingDays',
        back_populates='week_definition',
        cascade='all, delete-orphan',
        order_by='WorkingDays.day_of_week',
    )


class WorkingDays(Base):
    __tablename__ = 'working_days'
    __table_args__ = (
        UniqueConstraint('week_definition_id', 'day_of_week'),
    )

    week_definition_id = Column(ForeignKey('week_definitions.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday, 6 = Sunday
    id = Column(Integer, primary_key=True)

    week_definition = relationship('WeekDefinitions', back_populates='working_days')
    time_slots = relationship(
        'TimeSlots',
        back_populates='working_day',
        cascade='all, delete-orphan',
        order_by='TimeSlots.starting_time',
    )


class TimeSlots(Base):
    __tablename__ = 'time_slots'
    __table_args__ = (
        UniqueConstraint('working_day_id', 'starting_time'),
    )

    working_day_id = Column(ForeignKey('working_days.id', ondelete='CASCADE'), nullable=False)
    starting_time = Column(Time, nullable=False)
    ending_time = Column(Time, nullable=False)
    is_open = Column(Integer, nullable=False, server_default=text('1'))
    max_capacity = Column(Integer, nullable=False, server_default=text('0'))  # 0 = reservation rule value
    id = Column(Integer, primary_key=True)

    working_day = relationship('WorkingDays', back_populates='time_slots')


class ReservationRules(Base):
    __tablename__ = 'reservation_rules'
    __table_args__ = (
        UniqueConstraint('form_id', 'date_of_apply'),
    )

    form_id = Column(ForeignKey('forms.id', ondelete='CASCADE'), nullable=False)
    date_of_apply = Column(Date, nullable=False)
    max_capacity_per_slot = Column(Integer, nullable=False, server_default=text('1'))
    max_people_per_appointment = Column(Integer, nullable=False, server_default=text('1'))
    min_hours_before_appointment = Column(Integer, nullable=False, server_default=text('0'))
    max_appointments_per_user = Column(Integer, nullable=False, server_default=text('0'))
    nb_days_for_max_appointments_per_user = Column(Integer, nullable=False, server_default=text('0'))
    nb_days_between_appointments = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    form = relationship('Forms', back_populates='reservation_rules')


class ClosingDays(Base):
    __tablename__ = 'closing_days'
    __table_args__ = (
        UniqueConstraint('form_id', 'date_of_closing_day'),
    )

    form_id = Column(ForeignKey('forms.id', ondelete='CASCADE'), nullable=False)
    date_of_closing_day = Column(Date, nullable=False)
    id = Column(Integer, primary_key=True)

    form = relationship('Forms', back_populates='closing_days')


class Slots(Base):
    __tablename__ = 'slots'
    __table_args__ = (
        UniqueConstraint('form_id', 'starting_date_time'),
        UniqueConstraint('form_id', 'ending_date_time'),
    )

    form_id = Column(ForeignKey('forms.id', ondelete='CASCADE'), nullable=False)
    starting_date_time = Column(DateTime, nullable=False)
    ending_date_time = Column(DateTime, nullable=False)
    is_open = Column(Integer, nullable=False, server_default=text('1'))
    is_specific = Column(Integer, nullable=False, server_default=text('0'))
    max_capacity = Column(Integer, nullable=False, server_default=text('0'))
    nb_remaining_places = Column(Integer, nullable=False, server_default=text('0'))
    nb_potential_remaining_places = Column(Integer, nullable=False, server_default=text('0'))
    nb_places_taken = Column(Integer, nullable=False, server_default=text('0'))
    version = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    form = relationship('Forms', back_populates='slots')
    appointments = relationship(
        'Appointments',
        back_populates='slot',
        cascade='all, delete-orphan',
    )


class Appointments(Base):
    __tablename__ = 'appointments'

    slot_id = Column(ForeignKey('slots.id', ondelete='CASCADE'), nullable=False)
    nb_booked_seats = Column(Integer, nullable=False, server_default=text('1'))
    is_cancelled = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    slot = relationship('Slots', back_populates='appointments')
