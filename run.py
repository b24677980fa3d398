from nflpool import create_app, db
from nflpool.models import (
    ConfidencePick,
    Game,
    Pool,
    PoolMember,
    SurvivorPick,
    SurvivorStatus,
    UserWeeklyScore,
)

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "Pool": Pool,
        "PoolMember": PoolMember,
        "Game": Game,
        "ConfidencePick": ConfidencePick,
        "SurvivorPick": SurvivorPick,
        "UserWeeklyScore": UserWeeklyScore,
        "SurvivorStatus": SurvivorStatus,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=app.config.get("DEBUG", False))
