import argparse
from pathlib import Path

from ferrycast.core.db import SessionLocal
from ferrycast.core.log import configure_logging_if_needed
from ferrycast.jobs.models.load_models import load_models


def main():
    p = argparse.ArgumentParser(description="Load fitted model parameters into model_parameters_v2")
    p.add_argument("--file", required=True, help="JSON array of model parameter objects")
    p.add_argument("--replace-all", action="store_true", help="Delete every stored model first")
    args = p.parse_args()

    configure_logging_if_needed()

    db = SessionLocal()
    try:
        res = load_models(db, Path(args.file), replace_all=args.replace_all)
        print(res)
    finally:
        db.close()


if __name__ == "__main__":
    main()
