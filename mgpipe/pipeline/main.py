"""
mgPipe Pipeline Main Entry Point

Command-line front end for the mgPipe initialization layer. It collects the
pipeline parameters, resolves and validates them, prepares the worker pool and
runs the selected modeling engine.
"""

import os
import sys
import logging
import argparse
from datetime import datetime, timezone

from mgpipe.pipeline.engine import load_engine
from mgpipe.pipeline.errors import MgPipeError
from mgpipe.pipeline.orchestrator import try_init_mg_pipe

ENGINE_ENV_VAR = "MGPIPE_ENGINE"

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Initialize and run the mgPipe microbiome community modeling pipeline.")
    parser.add_argument("-m", "--mod_path", type=str, required=True,
                        help="Path to the directory containing organism model files (e.g., data_input/AGORA103)")
    parser.add_argument("-a", "--abun_path", type=str, required=True,
                        help="Path to the normalized abundance table (e.g., data_input/normCoverage.csv)")
    parser.add_argument("--compute_profiles", action="store_true",
                        help="Run flux variability analysis to compute the metabolic profiles.")
    parser.add_argument("-r", "--res_path", type=str, default=None,
                        help="Directory where results are saved (default: ./Results)")
    parser.add_argument("-d", "--diet_file_path", type=str, action="append", default=None,
                        help="Diet file; '.txt' is appended if missing. Repeat once per sample "
                             "for individual diets (default: AverageEuropeanDiet)")
    parser.add_argument("-i", "--info_file_path", type=str, default="",
                        help="Path to the file with stratification criteria, if available")
    parser.add_argument("--host_path", type=str, default="",
                        help="Path to a host model, e.g. Recon3D (default: none)")
    parser.add_argument("--host_biomass_rxn", type=str, default="",
                        help="Biomass reaction of the host model (default: none)")
    parser.add_argument("--host_biomass_rxn_flux", type=float, default=1.0,
                        help="Upper bound on flux through the host biomass reaction (default: 1)")
    parser.add_argument("--objre", type=str, action="append", default=None,
                        help="Objective reaction of the organisms; may be repeated (default: EX_biomass(e))")
    parser.add_argument("--save_constr_models", action="store_true",
                        help="Save the models with imposed constraints.")
    parser.add_argument("--workers", type=int, default=2,
                        help="Number of parallel workers, must be at least 2 (default: 2)")
    parser.add_argument("--r_diet", action="store_true",
                        help="Also run rich diet simulations.")
    parser.add_argument("--p_diet", action="store_true",
                        help="Also run personalized diet simulations.")
    parser.add_argument("--no_human_mets", action="store_true",
                        help="Do not provide human-derived gut metabolites to the models.")
    parser.add_argument("--lower_bm_bound", type=float, default=0.4,
                        help="Lower bound on community biomass (default: 0.4)")
    parser.add_argument("--repeat_sim", action="store_true",
                        help="Repeat simulations and overwrite previous results.")
    parser.add_argument("--no_adapt_medium", action="store_true",
                        help="Use the diet as is instead of adapting it to the models.")
    parser.add_argument("--remove_blocked_rxns", action="store_true",
                        help="Remove reactions blocked on the input diet.")
    parser.add_argument("--engine", type=str, default=os.environ.get(ENGINE_ENV_VAR),
                        help=f"Modeling engine as 'module:function' (default: ${ENGINE_ENV_VAR})")
    parser.add_argument("--log_level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: INFO)")
    return parser


def options_from_args(args: argparse.Namespace) -> dict:
    """Translate parsed command-line arguments into `resolve_config` options."""
    options = dict(
        info_file_path=args.info_file_path,
        host_path=args.host_path,
        host_biomass_rxn=args.host_biomass_rxn,
        host_biomass_rxn_flux=args.host_biomass_rxn_flux,
        objre=args.objre or "",
        save_constr_models=args.save_constr_models,
        num_workers=args.workers,
        r_diet=args.r_diet,
        p_diet=args.p_diet,
        include_human_mets=not args.no_human_mets,
        lower_bm_bound=args.lower_bm_bound,
        repeat_sim=args.repeat_sim,
        adapt_medium=not args.no_adapt_medium,
        remove_blocked_rxns=args.remove_blocked_rxns,
    )
    if args.res_path is not None:
        options['res_path'] = args.res_path
    if args.diet_file_path:
        diets = args.diet_file_path
        options['diet_file_path'] = diets[0] if len(diets) == 1 else diets
    return options


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if not args.engine:
        parser.error(f"no modeling engine given; use --engine or set ${ENGINE_ENV_VAR}")

    logger.info(f"--- mgPipe Pipeline Started at {datetime.now(tz=timezone.utc)} ---")
    try:
        engine = load_engine(args.engine)
    except MgPipeError as e:
        logger.error(str(e))
        return 1

    outcome = try_init_mg_pipe(args.mod_path, args.abun_path, args.compute_profiles, engine,
                               **options_from_args(args))
    if not outcome.ok:
        logger.error(f"mgPipe initialization failed: {type(outcome.error).__name__}: {outcome.error}")
        return 1

    logger.info(f"Models OK: {getattr(outcome.result, 'models_ok', None)}")
    logger.info("--- mgPipe Pipeline Finished ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
