SCHEMA = """
CREATE TABLE IF NOT EXISTS airlines (
    airline_id UUID PRIMARY KEY,
    name TEXT,
    official_name TEXT,
    official_email TEXT,
    official_phone TEXT,
    address TEXT,
    company_size TEXT,
    logo TEXT,
    status TEXT
);

CREATE TABLE IF NOT EXISTS aircraft (
    aircraft_id UUID PRIMARY KEY,
    aircraft_number TEXT,
    type TEXT,
    capacity INTEGER,
    configuration TEXT,
    airline_id UUID REFERENCES airlines (airline_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS airports (
    airport_id UUID PRIMARY KEY,
    airport_code TEXT,
    name TEXT,
    city TEXT,
    country TEXT
);

CREATE TABLE IF NOT EXISTS flights (
    flight_id UUID PRIMARY KEY,
    origin_airport_id UUID REFERENCES airports (airport_id) ON DELETE CASCADE,
    destination_airport_id UUID REFERENCES airports (airport_id) ON DELETE CASCADE,
    departure TIMESTAMPTZ,
    arrival TIMESTAMPTZ,
    price DOUBLE PRECISION,
    status TEXT,
    airline_id UUID REFERENCES airlines (airline_id) ON DELETE CASCADE,
    aircraft_id UUID REFERENCES aircraft (aircraft_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS fares (
    fare_id UUID PRIMARY KEY,
    seat_class TEXT,
    base_price DOUBLE PRECISION,
    tax DOUBLE PRECISION,
    currency TEXT
);

CREATE TABLE IF NOT EXISTS seats (
    seat_id UUID PRIMARY KEY,
    seat_number TEXT,
    seat_class TEXT,
    seat_type TEXT,
    seat_status TEXT,
    fare_id UUID REFERENCES fares (fare_id) ON DELETE SET NULL,
    flight_id UUID REFERENCES flights (flight_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS customers (
    customer_id UUID PRIMARY KEY,
    name TEXT,
    email TEXT UNIQUE,
    phone TEXT,
    password TEXT,
    address TEXT,
    wallet_balance DOUBLE PRECISION,
    loyalty_points INTEGER,
    role TEXT
);

CREATE TABLE IF NOT EXISTS bookings (
    booking_id UUID PRIMARY KEY,
    booking_time TIMESTAMPTZ,
    pnr_number TEXT,
    booking_status TEXT,
    customer_id UUID REFERENCES customers (customer_id) ON DELETE CASCADE,
    flight_id UUID REFERENCES flights (flight_id) ON DELETE CASCADE,
    seat_id UUID REFERENCES seats (seat_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS payments (
    payment_id UUID PRIMARY KEY,
    amount DOUBLE PRECISION,
    method TEXT,
    payment_status TEXT,
    txn_reference TEXT,
    booking_id UUID UNIQUE REFERENCES bookings (booking_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS employees (
    employee_id UUID PRIMARY KEY,
    name TEXT,
    email TEXT,
    phone TEXT,
    address TEXT,
    employee_role TEXT,
    status TEXT,
    airline_id UUID REFERENCES airlines (airline_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS notifications (
    notification_id UUID PRIMARY KEY,
    type TEXT,
    message TEXT,
    sent_at TIMESTAMPTZ,
    status TEXT,
    customer_id UUID REFERENCES customers (customer_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS feedbacks (
    feedback_id UUID PRIMARY KEY,
    rating INTEGER CHECK (rating BETWEEN 1 AND 5),
    comments TEXT,
    created_at TIMESTAMPTZ,
    customer_id UUID REFERENCES customers (customer_id) ON DELETE CASCADE,
    flight_id UUID REFERENCES flights (flight_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS waitlists (
    waitlist_id UUID PRIMARY KEY,
    position INTEGER,
    status TEXT,
    customer_id UUID REFERENCES customers (customer_id) ON DELETE CASCADE,
    flight_id UUID REFERENCES flights (flight_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS outbox (
    event_id TEXT PRIMARY KEY,
    event_type TEXT NOT NULL,
    payload TEXT NOT NULL,
    created_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS inbox (
    event_id TEXT PRIMARY KEY,
    event_type TEXT NOT NULL,
    payload TEXT NOT NULL,
    received_at TIMESTAMPTZ DEFAULT now()
);
"""
