"""
Command-line interface for film scattering analysis.

Commands:
    filmscatter analyze   - Extract the beam width from one film scan
    filmscatter highland  - Evaluate the Highland scattering angle
    filmscatter run       - Analyze a full experiment from a manifest
    filmscatter compare   - Compare saved experiment runs
    filmscatter config    - Show or save the configuration
"""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import click
import pandas as pd

from .. import __version__
from ..config import Config
from ..errors import FilmScatterError, ManifestError
from ..physics.highland import HighlandParams


def highland_options(f):
    """Shared Highland parameter options; defaults come from the config."""
    options = [
        click.option("--thickness", "-x", type=float, default=None,
                     help="Material thickness x (cm)."),
        click.option("--density", type=float, default=None,
                     help="Material density (g/cm^3), recorded only."),
        click.option("--rad-length", "-X", type=float, default=None,
                     help="Radiation length X0 (cm)."),
        click.option("--momentum", "-p", type=float, default=None,
                     help="Beam momentum p (MeV/c)."),
        click.option("--beta", "-b", type=float, default=None,
                     help="Beam velocity v/c."),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _highland_from_options(
    cfg: Config,
    thickness: Optional[float],
    density: Optional[float],
    rad_length: Optional[float],
    momentum: Optional[float],
    beta: Optional[float],
) -> HighlandParams:
    base = cfg.highland_params()
    return HighlandParams(
        thickness=base.thickness if thickness is None else thickness,
        density=base.density if density is None else density,
        rad_length=base.rad_length if rad_length is None else rad_length,
        momentum=base.momentum if momentum is None else momentum,
        beta=base.beta if beta is None else beta,
    )


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file (JSON). Defaults to ~/.filmscatter_config.json."
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool):
    """
    Multiple Coulomb scattering analysis from radiochromic film scans.

    Measures Gaussian beam widths on air and material films and compares
    the resulting scattering angle with the Highland formula.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = Config.load(Path(config_path) if config_path else None)


@cli.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@click.option("--pixel-to-mm", type=float, default=None,
              help="Physical pixel size of the working grid (mm/pixel).")
@click.option("--sample-size", type=int, default=None,
              help="Longest side of the working grid (0 = full resolution).")
@click.option("--plot", "plot_path", type=click.Path(), default=None,
              help="Save a radial profile plot to this file.")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@click.pass_obj
def analyze(
    cfg: Config,
    image: str,
    pixel_to_mm: Optional[float],
    sample_size: Optional[int],
    plot_path: Optional[str],
    as_json: bool,
):
    """
    Measure the Gaussian beam width of a single film scan.

    Example:
        filmscatter analyze air_100mm.png --pixel-to-mm=0.085
    """
    from ..imaging.analyzer import analyze_film

    scale = pixel_to_mm if pixel_to_mm is not None else cfg.PIXEL_TO_MM
    size = sample_size if sample_size is not None else cfg.SAMPLE_SIZE

    if not scale > 0:
        raise click.BadParameter("must be positive", param_hint="--pixel-to-mm")

    try:
        analysis = analyze_film(
            image,
            scale,
            sample_size=size,
            noise_threshold=cfg.NOISE_THRESHOLD,
            bin_width_px=cfg.BIN_WIDTH_PX,
            low_fraction=cfg.FIT_LOW_FRACTION,
            high_fraction=cfg.FIT_HIGH_FRACTION,
            min_points=cfg.FIT_MIN_POINTS,
        )
    except FilmScatterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({
            "image": str(image),
            "sigma_mm": analysis.sigma,
            "centroid_px": list(analysis.centroid),
            "amplitude": analysis.fit.amplitude,
            "r_squared": analysis.fit.r_squared,
            "fit_points": analysis.fit.n_points,
            "confidence": analysis.fit.confidence.value,
            "grid_px": [analysis.width_px, analysis.height_px],
        }, indent=2))
    else:
        click.echo(f"Image: {Path(image).name} ({analysis.width_px}x{analysis.height_px} px grid)")
        click.echo(f"Centroid: ({analysis.centroid.x:.2f}, {analysis.centroid.y:.2f}) px")
        click.echo(f"Sigma: {analysis.sigma:.4f} mm")
        click.echo(f"Amplitude: {analysis.fit.amplitude:.2f}")
        click.echo(f"R-squared: {analysis.fit.r_squared:.4f} ({analysis.fit.n_points} points)")
        click.echo(f"Fit: {analysis.fit.confidence.value}")

    if plot_path:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from ..visualization.plots import plot_radial_profile, save_figure

        fig, ax = plt.subplots(figsize=(8, 4))
        plot_radial_profile(analysis, title=Path(image).name, ax=ax)
        saved = save_figure(fig, plot_path)
        if not as_json:
            click.echo(f"Plot saved to {saved}")


@cli.command()
@highland_options
@click.pass_obj
def highland(
    cfg: Config,
    thickness: Optional[float],
    density: Optional[float],
    rad_length: Optional[float],
    momentum: Optional[float],
    beta: Optional[float],
):
    """
    Evaluate the Highland RMS scattering angle.

    Example:
        filmscatter highland -x 1.0 -X 36.08 -p 150 -b 0.5
    """
    params = _highland_from_options(cfg, thickness, density, rad_length, momentum, beta)
    theta = params.theta()

    click.echo(f"x = {params.thickness} cm, X0 = {params.rad_length} cm, "
               f"p = {params.momentum} MeV/c, beta = {params.beta}")
    click.echo(f"Highland theta_rms: {theta:.6e} rad ({theta * 1000:.4f} mrad)")

    if not params.is_valid:
        click.echo("Warning: all parameters must be positive; theta set to 0.", err=True)


@cli.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
@click.option("--material", "-m", default=None, help="Material name for this run.")
@click.option("--pixel-to-mm", type=float, default=None,
              help="Physical pixel size of the working grid (mm/pixel).")
@highland_options
@click.option("--output", "-o", type=click.Path(), default=None,
              help="Write the summary table to this CSV file.")
@click.option("--save-run", "runs_file", type=click.Path(), default=None,
              help="Append this run to a JSON run store.")
@click.option("--plot", "plot_path", type=click.Path(), default=None,
              help="Save a sigma-vs-distance plot to this file.")
@click.option("--workers", type=int, default=None,
              help="Number of images decoded in parallel.")
@click.pass_obj
def run(
    cfg: Config,
    manifest: str,
    material: Optional[str],
    pixel_to_mm: Optional[float],
    thickness: Optional[float],
    density: Optional[float],
    rad_length: Optional[float],
    momentum: Optional[float],
    beta: Optional[float],
    output: Optional[str],
    runs_file: Optional[str],
    plot_path: Optional[str],
    workers: Optional[int],
):
    """
    Analyze a full experiment described by a CSV manifest.

    The manifest has one row per film station with columns
    'sample_id', 'distance_mm' and either 'air_image'/'material_image'
    (paths relative to the manifest) or 'sigma_air'/'sigma_material'
    (pre-measured widths in mm).

    Example:
        filmscatter run lead_5mm.csv -m "Lead 5mm" -x 0.5 -X 0.56 --save-run runs.json
    """
    from ..comparison.runs import RunStore, theory_match_percentage

    manifest_path = Path(manifest)
    params = _highland_from_options(cfg, thickness, density, rad_length, momentum, beta)

    scale = pixel_to_mm if pixel_to_mm is not None else cfg.PIXEL_TO_MM
    if not scale > 0:
        raise click.BadParameter("must be positive", param_hint="--pixel-to-mm")

    try:
        session = load_manifest(
            manifest_path,
            cfg,
            material_name=material,
            highland_params=params,
            pixel_to_mm=pixel_to_mm,
        )
    except FilmScatterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Loaded {len(session)} film stations from {manifest_path.name}")
    click.echo(f"Material: {session.material_name}")
    click.echo(f"Pixel scale: {session.pixel_to_mm} mm/px")
    click.echo()

    errors = session.analyze_images(max_workers=workers)
    for (sample_id, kind), err in sorted(errors.items(), key=lambda kv: kv[0][0]):
        click.echo(f"Warning: sample {sample_id} {kind.value} image skipped: {err}", err=True)

    for (sample_id, kind), analysis in sorted(session.analyses.items(), key=lambda kv: kv[0][0]):
        if not analysis.ok:
            click.echo(
                f"Warning: sample {sample_id} {kind.value} fit unreliable "
                f"({analysis.fit.confidence.value})", err=True
            )

    results = session.results()

    click.echo("=" * 72)
    click.echo("SCATTERING RESULTS")
    click.echo("=" * 72)
    table = results.to_dataframe()
    click.echo(table.to_string(float_format=lambda v: f"{v:.4g}"))
    click.echo()

    match = theory_match_percentage(results.theta_rms, results.theoretical_theta)
    click.echo(f"Theta RMS ({results.n_valid} stations): {results.theta_rms:.4e} rad")
    click.echo(f"Highland theta: {results.theoretical_theta:.4e} rad")
    click.echo(f"Theory match: {match:.1f}%")

    if results.warnings:
        click.echo("\nWarnings:")
        for w in results.warnings:
            click.echo(f"  - {w}")

    if output:
        table.to_csv(output)
        click.echo(f"\nResults saved to {output}")

    if runs_file:
        try:
            store = RunStore.load_json(runs_file)
            saved = session.save_run(store)
            store.save_json(runs_file)
        except FilmScatterError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        click.echo(f"Run {saved.id} saved to {runs_file} ({len(store)} runs)")

    if plot_path:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from ..visualization.plots import plot_scattering_results, save_figure

        fig, ax = plt.subplots(figsize=(10, 5))
        plot_scattering_results(results, title=session.material_name, ax=ax)
        click.echo(f"Plot saved to {save_figure(fig, plot_path)}")


@cli.command()
@click.argument("runs_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--run", "run_ids", multiple=True,
              help="Run id to include (repeatable). Defaults to all runs.")
@click.option("--output", "-o", type=click.Path(), default=None,
              help="Write the comparison table to this CSV file.")
@click.option("--plot", "plot_path", type=click.Path(), default=None,
              help="Save a comparison plot to this file.")
def compare(
    runs_file: str,
    run_ids: tuple[str, ...],
    output: Optional[str],
    plot_path: Optional[str],
):
    """
    Compare saved runs at matching film distances.

    Example:
        filmscatter compare runs.json --run 3f2a9c --run 8b1e07
    """
    from ..comparison.runs import RunStore, build_comparison_series, run_statistics

    try:
        store = RunStore.load_json(runs_file)
        runs = store.select(run_ids) if run_ids else store.runs
    except FilmScatterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyError as e:
        click.echo(f"Error: unknown run id(s): {e.args[0]}", err=True)
        sys.exit(1)

    if not runs:
        click.echo("No saved runs found.")
        return

    click.echo(f"Comparing {len(runs)} run(s)")
    click.echo("-" * 72)
    for run in runs:
        stats = run_statistics(run)
        click.echo(f"{stats.run_id}  {stats.material_name}")
        click.echo(f"   Theta RMS: {stats.theta_rms:.4e} rad  "
                   f"(Highland {stats.theoretical_theta:.4e} rad)")
        click.echo(f"   Max sigma corrected: {stats.max_sigma_corrected:.3f} mm")
        click.echo(f"   Theory match: {stats.theory_match_percentage:.1f}%")
    click.echo()

    series = build_comparison_series(runs)
    click.echo("Sigma corrected (mm) by distance:")
    click.echo(series.to_string(float_format=lambda v: f"{v:.3f}", na_rep="-"))

    if output:
        series.to_csv(output)
        click.echo(f"\nComparison saved to {output}")

    if plot_path:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from ..visualization.plots import plot_run_comparison, save_figure

        fig, ax = plt.subplots(figsize=(10, 5))
        plot_run_comparison(series, runs, ax=ax)
        click.echo(f"Plot saved to {save_figure(fig, plot_path)}")


@cli.command()
@click.option("--save", is_flag=True, help="Write the effective configuration.")
@click.option("--path", "save_path", type=click.Path(dir_okay=False), default=None,
              help="Destination for --save. Defaults to ~/.filmscatter_config.json.")
@click.pass_obj
def config(cfg: Config, save: bool, save_path: Optional[str]):
    """
    Show the effective configuration.
    """
    for key, value in sorted(asdict(cfg).items()):
        click.echo(f"{key} = {value}")

    if save:
        written = cfg.save(Path(save_path) if save_path else None)
        click.echo(f"\nConfiguration saved to {written}")


def load_manifest(
    manifest_path: Path,
    cfg: Config,
    material_name: Optional[str] = None,
    highland_params: Optional[HighlandParams] = None,
    pixel_to_mm: Optional[float] = None,
):
    """
    Build an ExperimentSession from a CSV manifest.

    Raises:
        ManifestError: If the manifest cannot be read or lacks columns.
    """
    from ..session import ExperimentSession, FilmKind

    try:
        df = pd.read_csv(manifest_path)
    except (OSError, ValueError) as e:
        raise ManifestError(f"Could not read manifest {manifest_path}: {e}") from e

    if "distance_mm" not in df.columns:
        raise ManifestError(f"Manifest {manifest_path} needs a 'distance_mm' column")

    has_images = {"air_image", "material_image"} & set(df.columns)
    has_sigmas = {"sigma_air", "sigma_material"} & set(df.columns)
    if not has_images and not has_sigmas:
        raise ManifestError(
            f"Manifest {manifest_path} needs image columns "
            "('air_image', 'material_image') or sigma columns "
            "('sigma_air', 'sigma_material')"
        )

    session = ExperimentSession(
        config=cfg,
        material_name=material_name,
        highland_params=highland_params,
        pixel_to_mm=pixel_to_mm,
        n_samples=0,
    )
    base_dir = manifest_path.parent

    for i, row in enumerate(df.itertuples(index=False), 1):
        row = row._asdict()
        try:
            sample_id = int(row["sample_id"]) if "sample_id" in row else i
            distance = float(row["distance_mm"])
            sample = session.add_sample(distance=distance, sample_id=sample_id)
        except (TypeError, ValueError) as e:
            raise ManifestError(f"Invalid manifest row {i}: {e}") from e

        for column, kind in (("air_image", FilmKind.AIR), ("material_image", FilmKind.MATERIAL)):
            value = row.get(column)
            if isinstance(value, str) and value.strip():
                session.set_image(sample.id, kind, str(base_dir / value.strip()))

        for column, kind in (("sigma_air", FilmKind.AIR), ("sigma_material", FilmKind.MATERIAL)):
            value = row.get(column)
            if value is not None and pd.notna(value):
                session.record_sigma(sample.id, kind, float(value))

    return session


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
