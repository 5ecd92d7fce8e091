from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from hypotest import (
    HypothesisTestError,
    analyze,
    estimate_power,
    export_to_csv,
    generate_recommendation,
    generate_samples,
    generate_seed,
    load_samples,
    required_sample_size,
    simulate_power,
)

st.set_page_config(page_title="Hypothesis Test Explorer", layout="wide")

st.title("Hypothesis Test Explorer")
st.caption("Welch / Student / paired t-tests, Cohen's d and power analysis.")


def _power_curve(effect_size: float, alpha: float, method: str, max_n: int) -> pd.DataFrame:
    minimum = 2 if method == "t" else 1
    sizes = sorted({max(minimum, int(round(minimum + i * (max_n - minimum) / 60))) for i in range(61)})
    return pd.DataFrame(
        {
            "sample_size": sizes,
            "power": [estimate_power(effect_size, n, alpha=alpha, method=method).power for n in sizes],
        }
    )


with st.sidebar:
    st.header("Setup")

    mode = st.radio("Mode", ["Analyze data", "Simulate experiment", "Power planner"], index=0)

    confidence_level = st.slider("Confidence level", min_value=0.80, max_value=0.99, value=0.95, step=0.01)
    power_method = st.selectbox("Power method", ["normal", "t"], index=0)

    if mode == "Analyze data":
        uploaded = st.file_uploader("CSV file", type=["csv"])
        layout = st.radio("Layout", ["Two columns (wide)", "Group + value (long)"], index=0)
        group_column = st.text_input("Group column", value="group") if layout.endswith("(long)") else None
        value_column = st.text_input("Value column", value="value") if layout.endswith("(long)") else "value"
        equal_variance = st.checkbox("Assume equal variances (Student)", value=False)
        paired = st.checkbox("Paired samples", value=False)
        run = st.button("Analyze", type="primary")
    elif mode == "Simulate experiment":
        baseline_mean = st.number_input("Baseline mean", value=10.0, step=0.5)
        std = st.number_input("Standard deviation", min_value=0.01, value=2.0, step=0.1)
        true_effect = st.number_input("True effect (Cohen's d)", min_value=-3.0, max_value=3.0, value=0.5, step=0.05)
        sample_size = st.number_input("Sample size per group", min_value=2, max_value=100_000, value=64, step=2)
        seed = st.text_input("Seed (optional)", value="")
        sims = st.slider("Power simulations", min_value=100, max_value=5000, value=500, step=100)
        equal_variance = st.checkbox("Assume equal variances (Student)", value=False)
        paired = False
        run = st.button("Run simulation", type="primary")
    else:
        planned_effect = st.number_input("Effect size (Cohen's d)", min_value=0.01, max_value=3.0, value=0.5, step=0.05)
        target_power = st.slider("Target power", min_value=0.5, max_value=0.99, value=0.8, step=0.01)
        run = True


def render_results(baseline: list, enhanced: list, title_prefix: str = ""):
    report = analyze(
        baseline,
        enhanced,
        confidence_level=confidence_level,
        equal_variance=equal_variance,
        paired=paired,
        power_method=power_method,
    )
    test = report.t_test

    st.subheader(f"{title_prefix}Results")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Baseline mean", f"{report.baseline.mean:.4g}", f"sd {report.baseline.stddev:.3g}, n={report.baseline.n}")
    c2.metric("Enhanced mean", f"{report.enhanced.mean:.4g}", f"sd {report.enhanced.stddev:.3g}, n={report.enhanced.n}")
    c3.metric("Absolute change", f"{report.improvement.absolute:+.4g}")
    rel = report.improvement.relative
    c4.metric("Relative change", "undefined" if rel is None else f"{rel:+.2f}%")

    c5, c6, c7, c8 = st.columns(4)
    c5.metric("p-value", f"{test.p_value:.4g}")
    c6.metric(f"t ({test.method})", f"{test.t_statistic:.3f}", f"df {test.degrees_of_freedom:.1f}")
    c7.metric("Cohen's d", f"{report.effect_size.cohens_d:.3f}", report.effect_size.interpretation)
    c8.metric("Estimated power", f"{report.power.power * 100:.1f}%", "adequate" if report.power.adequate else "low")

    ci = test.confidence_interval
    st.write(f"**{confidence_level:.0%} confidence interval (enhanced − baseline):**", f"[{ci.lower:.4g}, {ci.upper:.4g}]")

    rec = generate_recommendation(report)
    st.success(rec) if (test.significant and report.improvement.absolute >= 0) else st.warning(rec)

    left, right = st.columns(2)

    with left:
        st.markdown("#### Distributions")
        df = pd.DataFrame(
            {"group": ["baseline"] * len(baseline) + ["enhanced"] * len(enhanced), "value": list(baseline) + list(enhanced)}
        )
        fig = px.box(df, x="group", y="value", points="all")
        fig.update_layout(height=360)
        st.plotly_chart(fig, use_container_width=True)

    with right:
        st.markdown("#### Mean difference")
        fig2 = go.Figure()
        fig2.add_trace(go.Scatter(x=[ci.lower, ci.upper], y=[0, 0], mode="lines", line=dict(width=8), name="CI"))
        fig2.add_trace(
            go.Scatter(x=[test.mean_difference], y=[0], mode="markers", marker=dict(size=14), name="Observed difference")
        )
        fig2.add_vline(x=0, line_dash="dash")
        fig2.update_layout(xaxis_title="Enhanced − baseline", yaxis_visible=False, height=360)
        st.plotly_chart(fig2, use_container_width=True)

    with st.expander("Report (JSON)"):
        st.json(report.to_dict())

    return report


if mode == "Analyze data":
    if run:
        if uploaded is None:
            st.warning("Upload a CSV file first.")
        else:
            try:
                baseline, enhanced = load_samples(uploaded, group_column=group_column, value_column=value_column)
                render_results(baseline, enhanced)
            except HypothesisTestError as e:
                st.error(str(e))

elif mode == "Simulate experiment":
    if run:
        seed_value = seed.strip() or generate_seed()
        st.caption(f"Seed: {seed_value} (enter it in the sidebar to replay this run)")
        df = generate_samples(
            baseline_mean=float(baseline_mean),
            effect_size=float(true_effect),
            std=float(std),
            sample_size=int(sample_size),
            seed=seed_value,
        )
        baseline = df.loc[df["group"] == "baseline", "value"].tolist()
        enhanced = df.loc[df["group"] == "enhanced", "value"].tolist()

        try:
            render_results(baseline, enhanced, title_prefix="Simulated ")
        except HypothesisTestError as e:
            st.error(str(e))

        sim = simulate_power(
            float(true_effect), int(sample_size), alpha=1 - confidence_level, simulations=int(sims), seed=seed_value
        )
        st.info(
            f"Monte Carlo power over {sim.simulations} runs: {sim.power * 100:.1f}% "
            f"(analytic estimate {sim.analytic_power * 100:.1f}%)."
        )

        st.download_button(
            label="Download CSV",
            data=export_to_csv(df).encode("utf-8"),
            file_name="samples.csv",
            mime="text/csv",
        )

else:
    alpha = 1 - confidence_level
    try:
        n = required_sample_size(planned_effect, power=target_power, alpha=alpha, method=power_method)
    except HypothesisTestError as e:
        st.error(str(e))
    else:
        st.metric("Required sample size per group", f"{n:,}")
        curve = _power_curve(planned_effect, alpha, power_method, max(4 * n, 10))
        fig = px.line(curve, x="sample_size", y="power", markers=False)
        fig.add_hline(y=target_power, line_dash="dash")
        fig.add_vline(x=n, line_dash="dot")
        fig.update_layout(yaxis_tickformat=",.0%", height=380)
        st.plotly_chart(fig, use_container_width=True)
