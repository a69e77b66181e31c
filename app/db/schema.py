from __future__ import annotations


def ensure_schema(conn) -> None:
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS raffle_rounds (
            id text PRIMARY KEY,
            state smallint NOT NULL DEFAULT 0 CHECK (state IN (0, 1)),
            entrance_fee numeric(78,0) NOT NULL CHECK (entrance_fee > 0),
            interval_seconds bigint NOT NULL CHECK (interval_seconds >= 0),
            pot numeric(78,0) NOT NULL DEFAULT 0 CHECK (pot >= 0),
            last_close_timestamp bigint NOT NULL,
            pending_request_id numeric(78,0),
            recent_winner text,
            recent_winner_pot numeric(78,0),
            recent_winner_paid_at bigint,
            created_at timestamptz NOT NULL DEFAULT now(),
            updated_at timestamptz NOT NULL DEFAULT now()
        );
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS raffle_players (
            round_id text NOT NULL REFERENCES raffle_rounds(id) ON DELETE CASCADE,
            position int NOT NULL,
            participant text NOT NULL,
            entered_at timestamptz NOT NULL DEFAULT now(),
            PRIMARY KEY (round_id, position)
        );
        """
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS raffle_players_participant_idx ON raffle_players (participant);"
    )
    conn.commit()
    cur.close()
