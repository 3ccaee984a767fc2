"""
Run the workshop end to end and render it as a single HTML page.

Each section function returns a ``Section`` (narrative text, tables, figure
paths); ``build_report`` runs them in order and writes ``report.html`` with
the figures embedded.
"""

import base64
import html
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import matplotlib
import matplotlib.pyplot as plt
import pandas as pd

from data.dataset_loader import load_dataset, zero_coded_columns
from data.missingness import generate_missing_data
from data.sentinels import detect_sentinels, missing_value_properties, propagation_demo, zeros_to_na
from data.summaries import miss_case_table, miss_var_summary, missing_patterns, n_miss, pct_miss
from evaluation import visualization as viz
from evaluation.metrics import variance_ratio
from evaluation.pooling import compare_estimates, fit_model
from evaluation.statistical_tests import little_mcar_test, missingness_association
from imputers.deletion import listwise_deletion
from imputers.mice_imputer import MICEImputerWrapper
from imputers.simple import MeanImputer, MedianImputer

logger = logging.getLogger(__name__)


@dataclass
class Section:
    title: str
    text: str
    tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    figures: Dict[str, Path] = field(default_factory=dict)


def _save(fig, figs_dir: Path, name: str) -> Path:
    path = figs_dir / f"{name}.png"
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return path


def sentinel_section(raw: pd.DataFrame, zero_columns: List[str]) -> Section:
    sentinels = detect_sentinels(raw, zero_columns=zero_columns)
    recoded = zeros_to_na(raw, zero_columns)
    demo = pd.DataFrame([propagation_demo([1.0, 2.0, None, 4.0])])
    return Section(
        title="Properties of missing values",
        text=(f"The raw table codes unmeasured values as 0. Recoding them gives "
              f"{n_miss(recoded)} missing cells ({pct_miss(recoded):.1f}% of the table). "
              f"Aggregations skip NaN by default; with skipna=False a single NaN makes the result NaN."),
        tables={
            'Missing value markers': missing_value_properties(),
            'Sentinels found': sentinels,
            'Propagation': demo,
        },
    )


def visualization_section(datasets: Dict[str, pd.DataFrame], scatter: Dict, figs_dir: Path) -> Section:
    figures = {}
    tables = {}
    for name, df in datasets.items():
        figures[f'{name}: missing map'] = _save(viz.vis_miss(df, sort_miss=True), figs_dir, f'{name}_vis_miss')
        figures[f'{name}: clustered missing map'] = _save(
            viz.vis_miss(df, cluster=True), figs_dir, f'{name}_vis_miss_cluster')
        figures[f'{name}: missing per variable'] = _save(viz.gg_miss_var(df), figs_dir, f'{name}_miss_var')
        figures[f'{name}: missing per case'] = _save(viz.gg_miss_case(df), figs_dir, f'{name}_miss_case')
        figures[f'{name}: co-missing variables'] = _save(viz.gg_miss_upset(df), figs_dir, f'{name}_upset')
        if name in scatter:
            x, y = scatter[name]['x'], scatter[name]['y']
            figures[f'{name}: {y} vs {x}'] = _save(viz.geom_miss_point(df, x, y), figs_dir, f'{name}_miss_point')
        tables[f'{name}: missing per variable'] = miss_var_summary(df)
        tables[f'{name}: missing per case'] = miss_case_table(df)
        tables[f'{name}: patterns'] = missing_patterns(df)
    return Section(
        title="Visualising missingness",
        text="Where are the gaps, how many are there, and which variables go missing together?",
        tables=tables,
        figures=figures,
    )


def mechanism_section(df: pd.DataFrame, variable: str, columns: List[str], seed: int) -> Section:
    observed = little_mcar_test(df[columns])
    association = missingness_association(df[columns], by=variable)

    # Amputate the complete cases under each mechanism to see what the test picks up
    complete = listwise_deletion(df[columns])
    rows = [{'data': 'observed', **observed}]
    for mechanism in ('MCAR', 'MAR', 'MNAR'):
        amputed, _ = generate_missing_data(complete, mechanism, 0.2, seed=seed)
        rows.append({'data': f'amputed {mechanism}', **little_mcar_test(amputed)})

    verdict = "rejects" if observed['p_value'] < 0.05 else "does not reject"
    return Section(
        title="Missingness mechanisms",
        text=(f"Little's test {verdict} MCAR for the observed data "
              f"(chi2 = {observed['statistic']:.1f}, df = {observed['df']}, p = {observed['p_value']:.3g}). "
              f"The second table compares each variable between rows with and without {variable}."),
        tables={
            "Little's MCAR test": pd.DataFrame(rows),
            f'Variables by missingness of {variable}': association,
        },
    )


def remediation_section(df: pd.DataFrame, mi_config: Dict, seed: int, figs_dir: Path) -> Section:
    data = df.drop(columns=mi_config.get('drop_columns', []), errors='ignore')
    formula = mi_config['formula']

    complete = listwise_deletion(data)
    mean_imputed = MeanImputer().fit_transform(data)
    median_imputed = MedianImputer().fit_transform(data)

    spread = pd.DataFrame({
        'mean': variance_ratio(data, mean_imputed),
        'median': variance_ratio(data, median_imputed),
    })

    mice = MICEImputerWrapper(
        m=mi_config.get('m', 5),
        max_iter=mi_config.get('max_iter', 10),
        method=mi_config.get('method', 'norm'),
        random_state=seed,
    )
    imputation = mice.fit_transform(data)
    fits = imputation.with_model(formula)
    pooled = fits.pool()
    cc_fit = fit_model(complete, formula)

    figures = {
        'Observed vs imputed densities': _save(
            viz.plot_imputed_distributions(data, imputation.imputations), figs_dir, 'mi_densities'),
        'Pooled estimates': _save(viz.plot_pooled_estimates(pooled, cc_fit), figs_dir, 'mi_pooled'),
    }

    return Section(
        title="Dealing with missing data",
        text=(f"Listwise deletion keeps {len(complete)} of {len(data)} rows. Mean and median imputation "
              f"keep every row but shrink the variance of imputed columns (ratios below 1). "
              f"Multiple imputation (m = {imputation.m}) fits {formula} on each completed dataset "
              f"and pools the results with Rubin's rules."),
        tables={
            'Variance after single imputation / before': spread,
            'Per-imputation estimates': fits.estimates(),
            'Pooled estimates': pooled,
            'Pooled vs complete cases': compare_estimates(pooled, cc_fit),
        },
        figures=figures,
    )


def _embed(path: Path) -> str:
    with open(path, 'rb') as f:
        img_data = base64.b64encode(f.read()).decode()
    return f'<img src="data:image/png;base64,{img_data}" style="max-width: 100%; height: auto;">'


def render_html(sections: List[Section], title: str = "Missing data workshop") -> str:
    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset='utf-8'>",
        f"<title>{html.escape(title)}</title>",
        "<style>body{font-family:sans-serif;max-width:1100px;margin:auto;padding:1em}"
        "table{border-collapse:collapse;margin-bottom:1em}"
        "td,th{border:1px solid #ccc;padding:3px 6px;font-size:0.9em}</style>",
        "</head><body>",
        f"<h1>{html.escape(title)}</h1>",
    ]
    for section in sections:
        parts.append(f"<h2>{html.escape(section.title)}</h2>")
        parts.append(f"<p>{html.escape(section.text)}</p>")
        for name, table in section.tables.items():
            parts.append(f"<h3>{html.escape(name)}</h3>")
            parts.append(table.to_html(float_format=lambda x: f'{x:.4g}', na_rep='NA'))
        for name, path in section.figures.items():
            parts.append(f"<h3>{html.escape(name)}</h3>")
            parts.append(_embed(path))
    parts.append("</body></html>")
    return "\n".join(parts)


def build_report(config: Dict, output_dir: str, datasets: Dict[str, pd.DataFrame] = None) -> Path:
    """
    Run every section and write ``report.html`` plus CSV tables.

    Parameters
    ----------
    config : dict
        Parsed ``workshop_config.yaml``
    output_dir : str
        Where to write the report, ``figs/`` and ``tables/``
    datasets : dict, optional
        Pre-loaded datasets by name; missing ones are loaded from the
        dataset configuration

    Returns
    -------
    Path
        Path of the HTML report
    """
    matplotlib.use('Agg')
    output_dir = Path(output_dir)
    figs_dir = output_dir / 'figs'
    tables_dir = output_dir / 'tables'
    figs_dir.mkdir(parents=True, exist_ok=True)
    tables_dir.mkdir(parents=True, exist_ok=True)

    workshop_cfg = config.get('workshop', {})
    seed = workshop_cfg.get('seed', 42)
    datasets = dict(datasets or {})

    def get(name: str) -> pd.DataFrame:
        if name not in datasets:
            datasets[name] = load_dataset(name, workshop_cfg.get('datasets_config'),
                                          cache=workshop_cfg.get('cache', True))
        return datasets[name]

    vis_cfg = config.get('visualization', {})
    mech_cfg = config.get('mechanisms', {})
    mi_cfg = config.get('multiple_imputation', {})
    zero_columns = zero_coded_columns('pima_raw', workshop_cfg.get('datasets_config'))

    sections = []
    logger.info("Section: missing value sentinels")
    sections.append(sentinel_section(get('pima_raw'), zero_columns))

    logger.info("Section: visualisation")
    vis_data = {name: get(name) for name in vis_cfg.get('datasets', ['pima', 'mammalsleep'])}
    sections.append(visualization_section(vis_data, vis_cfg.get('scatter', {}), figs_dir))

    logger.info("Section: mechanisms")
    mech_df = get(mech_cfg.get('dataset', 'pima'))
    mech_columns = mech_cfg.get('test_columns') or list(mech_df.select_dtypes('number').columns)
    sections.append(mechanism_section(mech_df, mech_cfg.get('variable', 'insulin'), mech_columns, seed))

    logger.info("Section: remediation")
    sections.append(remediation_section(get(mi_cfg.get('dataset', 'mammalsleep')), mi_cfg, seed, figs_dir))

    for section in sections:
        for name, table in section.tables.items():
            slug = ''.join(ch if ch.isalnum() else '_' for ch in name.lower()).strip('_')
            table.to_csv(tables_dir / f"{slug}.csv")

    report_path = output_dir / 'report.html'
    report_path.write_text(render_html(sections), encoding='utf-8')
    logger.info(f"Report written to {report_path}")
    return report_path
