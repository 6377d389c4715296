"""
Solar Savings Dashboard
Streamlit application for estimating solar production, savings and costs
for a street address.
"""

import streamlit as st

from solarcalc.config import (
    DEFAULT_ADDRESS_PLACEHOLDER,
    ApiKeys,
    configure_logging,
    load_api_keys,
    setup_page
)
from solarcalc.api_calls import best_panel_config, best_financial_analysis, roof_totals
from solarcalc.charts import (
    monthly_frame,
    production_summary,
    monthly_production_chart,
    solar_radiation_chart,
    efficiency_chart,
    ac_dc_chart,
    roof_segment_chart,
    panel_config_chart,
    cost_comparison_chart
)
from solarcalc.dashboard import (
    IncompleteReportError,
    InvalidInputError,
    SiteReport,
    load_complete_site_report
)
from solarcalc.financial_calcs import (
    breakeven_year,
    format_currency,
    format_kwh,
    format_payback,
    projection_frame
)
from solarcalc.market_data import COST_PER_WATT, ELECTRICITY_RATE, list_providers

# Page configuration
setup_page()
configure_logging()


@st.cache_data(show_spinner=False, ttl=3600)
def fetch_report(address: str, keys: ApiKeys) -> SiteReport:
    """Cached wrapper so reruns for the same address skip the network.

    Incomplete reports raise and are never cached.
    """
    return load_complete_site_report(address, keys)


def initialize_session_state():
    """Initialize session state variables."""
    defaults = {
        'address': '',
        'report': None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def render_address_input(keys: ApiKeys):
    """Address form; stores the loaded report in session state."""
    with st.form("address_search"):
        address = st.text_input(
            "Property Address",
            value=st.session_state.address,
            placeholder=DEFAULT_ADDRESS_PLACEHOLDER,
            help="Enter a full street address including city and state"
        )
        submitted = st.form_submit_button("🔍 Analyze", type="primary")

    if not submitted:
        return

    try:
        with st.spinner("Loading data..."):
            report = fetch_report(address, keys)
    except InvalidInputError as e:
        st.error(str(e))
        return
    except IncompleteReportError as e:
        report = e.report

    st.session_state.address = report.address
    st.session_state.report = report


def render_rate_info(report: SiteReport):
    """Info banner with the address and pricing assumptions."""
    col1, col2, col3 = st.columns(3)
    col1.markdown(f"**Address:**  \n{report.address}")
    if report.located:
        col1.caption(report.geocoding.display_name)
    col2.markdown(f"**Average USA Electricity Rate:**  \n${ELECTRICITY_RATE:.2f} per kWh")
    col3.markdown(f"**Solar Panel Cost:**  \n${COST_PER_WATT:.2f} per watt installed")


def render_metric_cards(report: SiteReport):
    metrics = report.metrics
    col1, col2, col3, col4 = st.columns(4)

    col1.metric(
        "☀️ Annual Production",
        format_kwh(metrics.annual_production_kwh),
        help="Yearly energy generated"
    )
    col2.metric(
        "💵 Annual Savings",
        format_currency(metrics.annual_savings),
        help="Estimated cost savings"
    )
    col3.metric(
        "🔋 Payback Period",
        format_payback(metrics),
        help="Investment recovery time"
    )
    col4.metric(
        "🌿 CO2 Reduction",
        f"{metrics.co2_reduction_kg:,.0f} kg",
        help="Annual carbon offset"
    )


def render_production_charts(report: SiteReport):
    """PVWatts monthly charts in a 2x2 grid."""
    frame = monthly_frame(report.production)
    st.caption(production_summary(report.production))

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Monthly AC System Output")
        st.caption("Energy production by month (kWhac)")
        st.plotly_chart(monthly_production_chart(frame), use_container_width=True)
    with col2:
        st.subheader("Solar Radiation Trend")
        st.caption("Daily solar radiation by month (kWh/m²/day)")
        st.plotly_chart(solar_radiation_chart(frame), use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("System Efficiency")
        st.caption("AC/DC conversion efficiency by month (%)")
        st.plotly_chart(efficiency_chart(frame), use_container_width=True)
    with col2:
        st.subheader("AC vs DC Production")
        st.caption("Monthly comparison of AC and DC output")
        st.plotly_chart(ac_dc_chart(frame), use_container_width=True)


def render_marketplace():
    """Installer cards with expandable details."""
    st.header("🛒 Market Place")

    providers = list_providers()
    for col, provider in zip(st.columns(len(providers)), providers):
        with col:
            st.markdown(f"### {provider.name}")
            st.caption(f"Base Price: {format_currency(provider.price)}")
            st.markdown(f"⚡ Efficiency: {provider.efficiency}%")

            with st.expander("Details"):
                st.markdown("**Pricing**")
                st.markdown(
                    f"- Base Price: {format_currency(provider.price)}\n"
                    f"- Installation: {format_currency(provider.installation_price)}\n"
                    f"- Total: {format_currency(provider.total_price)}"
                )
                st.markdown("**Technical Specs**")
                st.markdown(
                    f"- Efficiency: {provider.efficiency}%\n"
                    f"- Temp Coefficient: {provider.temp_coefficient}%/°C"
                )
                st.markdown("**Warranty & Safety**")
                st.markdown(f"- Warranty: {provider.warranty}")
                st.markdown("\n".join(f"- {m}" for m in provider.safety_measures))
                st.link_button(f"Visit {provider.name} Website", provider.url)


def render_building_insights(report: SiteReport):
    """Google Solar API building overview, roof and financial analysis."""
    solar = report.insights

    st.header("📊 Overall Solar Potential")
    col1, col2, col3 = st.columns(3)
    col1.metric("Max Panel Count", solar.max_panel_count)
    col2.metric("Max Array Area", f"{solar.max_array_area_m2:.2f} m²")
    col3.metric("Max Sunshine Hours/Year", f"{solar.max_sunshine_hours:,.0f}")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("🏠 Building Overview")
        st.table({
            "Field": ["Name", "Postal Code", "Administrative Area",
                      "Imagery Date", "Imagery Quality"],
            "Value": [solar.name, solar.postal_code, solar.administrative_area,
                      solar.imagery_date or "-", solar.imagery_quality or "-"],
        })

    with col2:
        st.subheader("☀️ Roof Segment Analysis")
        total_area, total_sunshine = roof_totals(solar.roof_segments)
        st.caption(
            f"Total Roof Area: {total_area:.2f} m² | "
            f"Total Sunshine Hours: {total_sunshine:.2f}"
        )
        if solar.roof_segments:
            st.plotly_chart(roof_segment_chart(solar.roof_segments), use_container_width=True)
        else:
            st.info("No roof segment data available.")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("🔋 Solar Panel Configuration")
        best_config = best_panel_config(solar.panel_configs)
        if best_config:
            st.caption(
                f"Best Configuration: {best_config.get('panelsCount', 0)} panels | "
                f"Energy: {best_config.get('yearlyEnergyDcKwh', 0):,.2f} kWh/year"
            )
            st.plotly_chart(panel_config_chart(solar.panel_configs), use_container_width=True)
        else:
            st.info("No panel configurations available.")

    with col2:
        st.subheader("🐷 Best Financial Analysis")
        analysis = best_financial_analysis(solar.financial_analyses)
        if analysis:
            render_financial_analysis(analysis)
        else:
            st.info("No financial analysis available for this building.")


def _money(money: dict) -> str:
    if not money:
        return "-"
    return f"{money.get('currencyCode', '')} {money.get('units', '0')}"


def render_financial_analysis(analysis: dict):
    savings = (analysis.get('cashPurchaseSavings') or {}).get('savings') or {}
    st.caption(f"Best Savings (Year 20): {_money(savings.get('savingsYear20'))}")

    rows = {"Field": ["💵 Monthly Bill"], "Value": [_money(analysis.get('monthlyBill'))]}
    details = analysis.get('financialDetails')
    if details:
        rows["Field"] += [
            "⚡ Initial AC kWh/Year",
            "📈 Remaining Lifetime Utility Bill",
            "💵 Federal Incentive",
            "% Solar Percentage",
        ]
        rows["Value"] += [
            f"{details.get('initialAcKwhPerYear', 0):,.2f}",
            _money(details.get('remainingLifetimeUtilityBill')),
            _money(details.get('federalIncentive')),
            f"{details.get('solarPercentage', 0):.2f}%",
        ]
    st.table(rows)


def render_savings_projection(report: SiteReport):
    """20-year cost comparison chart and table."""
    st.header("📈 20-Year Cost Comparison")

    inputs = report.projection_input
    if report.projection_from_defaults:
        st.caption(
            "No complete financial analysis for this building; "
            "showing an example household."
        )
    col1, col2, col3 = st.columns(3)
    col1.metric("Monthly Bill", format_currency(inputs.monthly_bill))
    col2.metric("20-Year Savings", format_currency(inputs.total_savings_over_horizon))
    col3.metric("Installation Cost", format_currency(inputs.installation_cost))

    st.plotly_chart(cost_comparison_chart(report.projection), use_container_width=True)

    year = breakeven_year(report.projection)
    if year is None:
        st.info("Solar does not break even within 20 years.")
    else:
        st.success(f"Solar breaks even in year {year}.")

    with st.expander("Year-by-year table"):
        frame = projection_frame(report.projection).rename(columns={
            'year': 'Year',
            'without_solar': 'Without Solar ($)',
            'with_solar': 'With Solar ($)',
            'difference': 'Difference ($)',
        })
        st.dataframe(frame, hide_index=True, use_container_width=True)


def render_sidebar():
    with st.sidebar:
        st.title("☀️ Solar Dashboard")
        st.divider()

        st.markdown("### About")
        st.markdown("""
        This tool estimates for your address:
        - Solar production by month
        - Annual savings and payback period
        - CO2 reduction
        - 20-year cost with and without solar

        **Powered by:**
        - NREL PVWatts
        - Google Solar API
        - maps.co geocoding
        """)


def main():
    """Main application entry point."""
    initialize_session_state()
    render_sidebar()

    st.title("☀️ Solar Savings Dashboard")

    keys = load_api_keys()
    missing = keys.missing_keys()
    if missing:
        st.error(
            f"Missing API keys: {', '.join(missing)}. Add them to "
            "`.streamlit/secrets.toml` or set them as environment variables."
        )
        st.stop()

    render_address_input(keys)

    report = st.session_state.report
    if report is None:
        st.info("Enter an address to get started.")
        return

    for error in report.errors:
        st.warning(error)

    if not report.located:
        return

    render_rate_info(report)
    st.divider()

    if report.metrics is not None:
        render_metric_cards(report)
        render_production_charts(report)
        st.divider()

    render_marketplace()
    st.divider()

    if report.insights is not None and report.insights.success:
        render_building_insights(report)
        st.divider()

    render_savings_projection(report)


if __name__ == "__main__":
    main()
