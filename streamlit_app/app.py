"""
SkyCast Weather Intelligence App
================================
A Streamlit dashboard that trains the SkyCast models on an uploaded
weather CSV and forecasts next-day conditions.
"""

import sys
import warnings
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

# Suppress warnings
warnings.filterwarnings('ignore')

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

try:
    from skycast.config import DATA_PATH, EPOCHS, REFERENCE_METRICS, WEATHER_LABELS
    from skycast.exceptions import ModelNotReadyError, SkyCastError
    from skycast.feature_engineering import (
        build_feature_vector,
        engineer_features,
        features_to_frame,
    )
    from skycast.forecaster import WeatherForecaster
    from skycast.preprocessing import (
        load_observations,
        observations_to_frame,
        summarize_observations,
    )
except ImportError as e:
    st.error(f"Import error: {e}")
    st.info("Make sure you're running from the project root directory")
    st.stop()

# ============================================================
# PAGE CONFIGURATION
# ============================================================
st.set_page_config(
    page_title="SkyCast AI",
    page_icon="🌤️",
    layout="wide",
)

st.markdown("""
<style>
    .main-header {
        font-size: 2.6rem;
        font-weight: 700;
        letter-spacing: -0.02em;
        text-transform: uppercase;
    }
    .sub-header {
        font-size: 0.8rem;
        font-family: monospace;
        opacity: 0.5;
        text-transform: uppercase;
        letter-spacing: 0.2em;
        margin-bottom: 1.5rem;
    }
    .forecast-box {
        background: #141414;
        color: #E4E3E0;
        padding: 1.5rem;
        border-radius: 4px;
        text-align: center;
    }
</style>
""", unsafe_allow_html=True)

WEATHER_ICONS = {
    'clear': "☀️",
    'cloudy': "☁️",
    'rain': "🌧️",
    'storm': "⛈️",
    'snow': "❄️",
}

# ============================================================
# SESSION STATE
# ============================================================
if 'forecaster' not in st.session_state:
    st.session_state.forecaster = WeatherForecaster()
if 'observations' not in st.session_state:
    st.session_state.observations = None


@st.cache_data
def load_default_dataset(path: str):
    """Load the bundled dataset, or None when it is missing or malformed."""
    if not Path(path).exists():
        return None
    try:
        return load_observations(path)
    except SkyCastError as e:
        st.warning(f"Bundled dataset rejected: {e}")
        return None


# ============================================================
# TABS
# ============================================================
def render_dataset_tab():
    st.markdown("## 🗄️ Historical Data")

    uploaded = st.file_uploader("Upload CSV", type=['csv'])
    if uploaded is not None:
        try:
            st.session_state.observations = load_observations(uploaded)
        except SkyCastError as e:
            st.error(f"Could not load file: {e}")

    observations = st.session_state.observations
    if not observations:
        st.info("No data loaded yet. Upload a CSV with columns: date, temperature_c, humidity, "
                "pressure_hpa, wind_speed_mps, precipitation_mm, weather_label")
        return

    summary = summarize_observations(observations)
    st.caption(f"Loaded {summary['records']} records")

    col1, col2 = st.columns([2, 1])
    with col1:
        st.dataframe(observations_to_frame(observations).head(50), use_container_width=True)
    with col2:
        st.metric("🌡️ Avg Temperature", f"{summary['avg_temperature']:.1f}°C")
        st.metric("💧 Avg Humidity", f"{summary['avg_humidity']:.1f}%")
        st.metric("Missing Values", summary['missing_values'])
        st.metric("Features", summary['features'])
        if summary['unknown_labels']:
            st.warning(f"{summary['unknown_labels']} rows carry an unknown label "
                       f"and will train as '{WEATHER_LABELS[0]}'")

    with st.expander("Engineered features"):
        features, _, _ = engineer_features(observations)
        dates = sorted(obs.date for obs in observations)
        st.dataframe(features_to_frame(features, dates).head(50), use_container_width=True)


def plot_training_log(log_df: pd.DataFrame):
    fig, ax = plt.subplots(figsize=(10, 4))
    for model_name, group in log_df.groupby('model'):
        ax.plot(group['epoch'], group['loss'], linewidth=2, label=model_name)
    ax.set_xlabel('Epoch', fontsize=11, fontweight='bold')
    ax.set_ylabel('Loss', fontsize=11, fontweight='bold')
    ax.set_title('Loss Curve', fontsize=13, fontweight='bold')
    ax.legend(loc='best')
    ax.grid(True, alpha=0.3, linestyle='--')
    plt.tight_layout()
    st.pyplot(fig)
    plt.close(fig)


def render_training_tab():
    st.markdown("## ▶️ Model Training")
    st.caption("LSTM temperature regressor + feed-forward weather classifier")

    forecaster = st.session_state.forecaster
    observations = st.session_state.observations

    if st.button("Start Training", disabled=not observations):
        progress_bar = st.progress(0.0)
        status = st.empty()
        total = 2 * EPOCHS
        seen = []

        def on_epoch_end(progress):
            seen.append(progress)
            progress_bar.progress(min(len(seen) / total, 1.0))
            status.text(f"{progress.model.upper()} EPOCH_{progress.epoch:03d}  LOSS: {progress.loss:.4f}")

        with st.spinner("Training..."):
            try:
                forecaster.train_all(observations, on_epoch_end=on_epoch_end)
                st.success("Training complete")
            except SkyCastError as e:
                st.error(f"Training failed: {e}")

    if forecaster.training_log:
        log_df = pd.DataFrame([vars(entry) for entry in forecaster.training_log])
        plot_training_log(log_df)
        st.markdown("### Training Logs")
        st.dataframe(log_df, use_container_width=True, height=300)
    else:
        st.caption("Waiting for training initialization...")


def render_evaluation_tab():
    st.markdown("## 📊 Evaluation Report")

    if not st.session_state.forecaster.is_ready:
        st.info("No metrics available. Please train the model.")
        return

    st.caption("Reference figures for this model family; not computed from your data")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("MAE", f"{REFERENCE_METRICS['mae']}°C")
    with col2:
        st.metric("RMSE", f"{REFERENCE_METRICS['rmse']}°C")
    with col3:
        st.metric("Accuracy", f"{REFERENCE_METRICS['accuracy'] * 100:.1f}%")


def render_prediction_tab():
    st.markdown("## 🔮 Forecasting Tool")
    st.caption("Enter current conditions to predict next-day weather")

    col1, col2 = st.columns(2)
    with col1:
        temp = st.number_input("🌡️ Temperature (°C)", value=20.0)
        humidity = st.number_input("💧 Humidity (%)", value=60.0)
        pressure = st.number_input("Pressure (hPa)", value=1010.0)
    with col2:
        wind = st.number_input("🌬️ Wind Speed (m/s)", value=5.0)
        precip = st.number_input("🌧️ Precipitation (mm)", value=0.0)

    if st.button("Generate Forecast"):
        features = build_feature_vector(temp, humidity, pressure, wind, precip)
        try:
            result = st.session_state.forecaster.predict(features)
        except ModelNotReadyError:
            st.warning("Please train the model first!")
            return
        except SkyCastError as e:
            st.error(f"Forecast failed: {e}")
            return

        st.markdown(f"""
        <div class="forecast-box">
            <div style="font-size: 3rem;">{WEATHER_ICONS.get(result.label, '🌤️')}</div>
            <h2 style="margin: 0.5rem 0;">{result.temperature:.1f}°C</h2>
            <p style="text-transform: uppercase; letter-spacing: 0.2em;">{result.label}</p>
            <p style="font-size: 0.8rem; opacity: 0.7;">confidence {result.confidence:.0%}</p>
        </div>
        """, unsafe_allow_html=True)


# ============================================================
# MAIN APP
# ============================================================
def main():
    st.markdown('<div class="main-header">🌤️ SkyCast AI</div>', unsafe_allow_html=True)
    st.markdown('<div class="sub-header">Weather Intelligence</div>', unsafe_allow_html=True)

    if st.session_state.observations is None:
        st.session_state.observations = load_default_dataset(DATA_PATH)

    data_tab, train_tab, eval_tab, predict_tab = st.tabs(
        ["🗄️ Dataset", "▶️ Training", "📊 Evaluation", "🔮 Prediction"]
    )
    with data_tab:
        render_dataset_tab()
    with train_tab:
        render_training_tab()
    with eval_tab:
        render_evaluation_tab()
    with predict_tab:
        render_prediction_tab()


if __name__ == "__main__":
    main()
