from stroke_risk.pipeline import PipelineRunner


def main() -> None:
    """Run the full stroke risk pipeline."""
    runner = PipelineRunner.from_yaml("config/default.yaml")
    runner.run()


if __name__ == "__main__":
    main()
