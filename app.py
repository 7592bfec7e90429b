import logging
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from flask import Flask, jsonify, render_template, request

from nr_scheduler.analysis import (
    buffer_dataframe, build_dataframe, compute_statistics, plot_buffer_over_slots,
    plot_mcs_histogram, plot_rbg_allocation, rbg_allocation_matrix,
)
from nr_scheduler.config import DOWNLINK, UPLINK
from nr_scheduler.errors import ConfigurationError
from nr_scheduler.simulator import run_scenario

logging.basicConfig(
    level=os.environ.get("NR_SCHEDULER_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Flask app and directory for generated images
app = Flask(__name__)
images_dir = os.path.join(app.static_folder, "images")
os.makedirs(images_dir, exist_ok=True)


def read_params(form) -> dict:
    """
    Simulation parameters from the form (or query string).
    Missing fields keep their default values.
    """
    params = {}
    int_fields = ["scs_mu", "n_ues", "num_harq", "num_logical_channels",
                  "rbg_config", "sim_slots", "num_rbs_ul", "num_rbs_dl", "seed"]
    for name in int_fields:
        if form.get(name):
            params[name] = int(form[name])
    if form.get("bandwidth_mhz"):
        params["bandwidth_mhz"] = int(form["bandwidth_mhz"])
    if form.get("traffic_type"):
        params["traffic_type"] = form["traffic_type"]
    if form.get("ul_stride_divisors"):
        params["ul_stride_divisors"] = tuple(
            float(x) for x in form["ul_stride_divisors"].split(",") if x.strip()
        )
    return params


def save_figure(fig, name) -> str:
    fig.tight_layout()
    fig.savefig(os.path.join(images_dir, name))
    plt.close(fig)
    return f"images/{name}"


@app.route("/", methods=["GET", "POST"])
def index():
    error = None

    if request.method == "POST":
        try:
            params = read_params(request.form)
            res = run_scenario(params)
        except (ConfigurationError, ValueError) as exc:
            logger.warning("Rejected scenario: %s", exc)
            return render_template("index.html", error=str(exc)), 400

        # 1) Per-UE statistics
        df = build_dataframe(res)
        stats_html = compute_statistics(df).to_html(classes="table table-sm")
        summary = {
            "grants_ul": int((df["direction"] == UPLINK).sum()),
            "grants_dl": int((df["direction"] == DOWNLINK).sum()),
            "skipped": len(res.skipped),
            "served_ul": int(df.loc[df["direction"] == UPLINK, "served_bytes"].sum()),
            "served_dl": int(df.loc[df["direction"] == DOWNLINK, "served_bytes"].sum()),
        }

        # 2) Plots
        images = {"mcs_image": save_figure(plot_mcs_histogram(df), "mcs_hist.png"),
                  "buffer_image": save_figure(plot_buffer_over_slots(buffer_dataframe(res)), "buffers.png")}
        for direction in (DOWNLINK, UPLINK):
            matrix = rbg_allocation_matrix(df, direction, 0, res.cell.n_ues, res.cell.num_rbgs(direction))
            fig = plot_rbg_allocation(matrix, f"{direction} RBG allocation, slot 0")
            images[f"rbg_{direction.lower()}_image"] = save_figure(fig, f"rbg_{direction.lower()}.png")

        return render_template(
            "results.html",
            summary=summary,
            stats_table=stats_html,
            skipped=res.skipped[:50],
            **images,
        )

    # GET: main page
    return render_template("index.html", error=error)


@app.route("/api/schedule")
def api_schedule():
    try:
        res = run_scenario(read_params(request.args))
    except (ConfigurationError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({
        "grants": res.grant_logs,
        "skipped": [vars(s) for s in res.skipped],
    })


if __name__ == "__main__":
    app.run(debug=True)
