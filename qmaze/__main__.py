"""Command line entry point for curriculum training."""

import argparse
import logging
import sys
from dataclasses import replace

from .app.config import TrainingConfig, load_config, reseed, save_config
from .app.recording import TrainingLog
from .app.training import Training
from .domain.errors import ConfigurationError, GraphError, NoOperatorApplicableError
from .domain.types import LevelData
from .utils.export import save_training_summary


class ProgressPrinter(TrainingLog):
    """Training log that prints a line per finished level."""

    def on_level_end(self, level: LevelData) -> None:
        super().on_level_end(level)
        print(f"✅ Level {level.level_nr}: {len(level.episodes)} episodes, "
              f"complexity {level.complexity:.2f}, "
              f"avg actions {level.average_number_of_actions:.1f} "
              f"(optimal {level.optimal_number_of_actions}) "
              f"→ {level.occurred_level_change_criterion}")


def build_config(args: argparse.Namespace) -> TrainingConfig:
    config = load_config(args.config) if args.config else TrainingConfig()
    if args.seed is not None:
        config = reseed(config, args.seed)
    if args.levels is not None:
        config = replace(config, number_of_levels=args.levels)
    return config


def main(argv=None):
    parser = argparse.ArgumentParser(description="Q-learning maze curriculum training")
    parser.add_argument("--config", type=str, help="Path to a JSON training configuration")
    parser.add_argument("--levels", type=int, help="Override the number of levels")
    parser.add_argument("--seed", type=int, help="Derive all random seeds from this value")
    parser.add_argument("--output-dir", type=str, help="Directory for level summaries and Q-tables")
    parser.add_argument("--save-config", type=str, help="Write the effective configuration to this file")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    print("🧠 Q-Learning Maze Curriculum Training")
    print("=" * 50)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1

    if args.save_config:
        print(f"💾 Configuration saved: {save_config(config, args.save_config)}")

    print(f"🏷️  Training: {config.training_name}")
    print(f"\n⚙️  Training Configuration:")
    print(f"   Levels: {config.number_of_levels}")
    print(f"   Initial path length: {config.initial_path_length} "
          f"({'horizontal' if config.horizontal else 'vertical'})")
    print(f"   Alpha / gamma: {config.q_learning_alpha} / {config.q_learning_gamma}")
    print(f"   Policy: {config.exploration_policy.config_string()}")
    print(f"   Delta per level: {config.delta}")

    sink = ProgressPrinter(config.training_name, config.episode_stopping_criteria)
    training = Training(config, sink)

    print(f"\n🚀 Starting training...")
    try:
        training.do_training()
    except KeyboardInterrupt:
        print(f"\n⏹️  Training interrupted by user")
        return 1
    except (GraphError, NoOperatorApplicableError) as e:
        print(f"\n❌ Training failed: {e}")
        return 1

    data = sink.training_data
    print(f"\n🎉 Training completed!")
    print(f"   Levels: {len(data.levels)}")
    print(f"   Total episodes: {data.total_episodes}")
    if data.levels:
        print(f"   Final complexity: {data.levels[-1].complexity:.2f}")
        print(f"   Final maze:")
        for row in data.levels[-1].maze.to_rows():
            print(f"      {row}")

    if args.output_dir:
        export_dir = save_training_summary(data, args.output_dir)
        print(f"✅ Summary saved: {export_dir}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
