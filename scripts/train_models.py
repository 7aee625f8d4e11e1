"""
Main training script for the SkyCast forecasting models.

Loads a weather CSV, trains the temperature regressor and the weather
classifier, and optionally forecasts from current conditions.

Usage:
    python scripts/train_models.py --data data/weather_data.csv \\
        --predict 20 60 1010 5 0
"""

import argparse
import sys
from pathlib import Path

from tqdm.auto import tqdm

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from skycast.config import DATA_PATH, EPOCHS, REFERENCE_METRICS, TrainingConfig
from skycast.exceptions import SkyCastError
from skycast.feature_engineering import build_feature_vector
from skycast.forecaster import WeatherForecaster
from skycast.preprocessing import load_observations, summarize_observations


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Train SkyCast weather models")
    parser.add_argument('--data', default=DATA_PATH, help="Path to the weather CSV")
    parser.add_argument('--epochs', type=int, default=EPOCHS, help="Epochs per model")
    parser.add_argument('--lenient', action='store_true',
                        help="Drop malformed rows instead of failing")
    parser.add_argument('--predict', nargs=5, type=float, metavar=('TEMP', 'HUM', 'PRESS', 'WIND', 'PRECIP'),
                        help="Current conditions to forecast from after training")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    print("\n" + "="*80)
    print("SKYCAST MODEL TRAINING")
    print("="*80)

    # ============================================================
    # STEP 1: Load Data
    # ============================================================
    print("\n[1/3] Loading data...")
    try:
        observations = load_observations(args.data, strict=not args.lenient)
    except (SkyCastError, OSError) as e:
        print(f"✗ Could not load {args.data}: {e}")
        return 1

    summary = summarize_observations(observations)
    print(f"✓ Records loaded: {summary['records']}")
    print(f"✓ Avg temperature: {summary['avg_temperature']:.1f}°C")
    print(f"✓ Avg humidity: {summary['avg_humidity']:.1f}%")

    # ============================================================
    # STEP 2: Train Models
    # ============================================================
    print("\n[2/3] Training models...")
    forecaster = WeatherForecaster(TrainingConfig(epochs=args.epochs))

    with tqdm(total=2 * args.epochs, desc='Training') as bar:
        def on_epoch_end(progress):
            postfix = {'model': progress.model, 'loss': f"{progress.loss:.4f}"}
            if progress.accuracy is not None:
                postfix['acc'] = f"{progress.accuracy:.3f}"
            bar.set_postfix(postfix)
            bar.update(1)

        try:
            log = forecaster.train_all(observations, on_epoch_end=on_epoch_end)
        except SkyCastError as e:
            print(f"\n✗ Training failed: {e}")
            return 1

    n_windows = max(len(observations) - forecaster.config.window_size, 0)
    print(f"✓ Regressor trained on {n_windows} windows")
    print(f"✓ Classifier trained on {len(observations)} rows")
    final = {entry.model: entry for entry in log}
    print(f"✓ Regressor final loss: {final['regressor'].loss:.4f}")
    print(f"✓ Classifier final loss: {final['classifier'].loss:.4f} "
          f"(accuracy {final['classifier'].accuracy:.3f})")
    print(f"  Reference metrics (illustrative): MAE {REFERENCE_METRICS['mae']}°C, "
          f"RMSE {REFERENCE_METRICS['rmse']}°C, accuracy {REFERENCE_METRICS['accuracy']:.0%}")

    # ============================================================
    # STEP 3: Forecast
    # ============================================================
    if args.predict:
        print("\n[3/3] Forecasting...")
        result = forecaster.predict(build_feature_vector(*args.predict))
        print(f"✓ Next-day temperature: {result.temperature:.1f}°C")
        print(f"✓ Weather: {result.label} (confidence {result.confidence:.0%})")
    else:
        print("\n[3/3] No conditions given, skipping forecast")

    print("\n" + "="*80)
    print("✅ TRAINING COMPLETE!")
    print("="*80)
    print("\nNext step: streamlit run streamlit_app/app.py")
    return 0


if __name__ == "__main__":
    sys.exit(main())
