"""Tests for configuration resolution."""

import logging
import os

import pytest
from pydantic import ValidationError as PydanticValidationError

from mgpipe.pipeline.config import DEFAULT_OBJECTIVE, MgPipeConfig, resolve_config
from mgpipe.pipeline.errors import ValidationError


class TestDefaults:
    def test_optional_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = resolve_config("models", "abun.csv", True)

        assert config.res_path == os.path.join(str(tmp_path), "Results") + os.sep
        assert config.diet_file_path == "AverageEuropeanDiet"
        assert config.info_file_path == ""
        assert config.host_path == ""
        assert config.host_biomass_rxn == ""
        assert config.host_biomass_rxn_flux == 1.0
        assert config.save_constr_models is False
        assert config.num_workers == 2
        assert config.r_diet is False
        assert config.p_diet is False
        assert config.include_human_mets is True
        assert config.lower_bm_bound == 0.4
        assert config.repeat_sim is False
        assert config.adapt_medium is True
        assert config.remove_blocked_rxns is False
        assert config.pat_stat is False

    def test_default_results_directory_is_created(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        resolve_config("models", "abun.csv", False)
        assert (tmp_path / "Results").is_dir()

    def test_default_objective_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="mgpipe.pipeline.config"):
            config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path / "out"))

        assert config.objre == (DEFAULT_OBJECTIVE,)
        assert config.objre == ("EX_biomass(e)",)
        assert any("default objective" in r.message for r in caplog.records)

    def test_explicit_objective_does_not_warn(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="mgpipe.pipeline.config"):
            config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path),
                                    objre="bio1")
        assert config.objre == ("bio1",)
        assert not caplog.records

    def test_objective_list(self, tmp_path):
        config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path),
                                objre=["bio1", "biomass525"])
        assert config.objre == ("bio1", "biomass525")


class TestResultPath:
    def test_trailing_separator_appended_and_directory_created(self, tmp_path):
        out = tmp_path / "out"
        config = resolve_config("models", "abun.csv", True, res_path=str(out))

        assert config.res_path == str(out) + os.sep
        assert out.is_dir()

    def test_existing_trailing_separator_kept(self, tmp_path):
        out = str(tmp_path / "out") + os.sep
        config = resolve_config("models", "abun.csv", True, res_path=out)
        assert config.res_path == out

    def test_nested_directory_created(self, tmp_path):
        out = tmp_path / "a" / "b" / "c"
        resolve_config("models", "abun.csv", True, res_path=out)
        assert out.is_dir()


class TestValidation:
    @pytest.mark.parametrize("mod_path, abun_path, compute_profiles", [
        (1, "abun.csv", True),
        ("models", None, True),
        ("models", "abun.csv", "yes"),
        ("models", "abun.csv", 1),
    ])
    def test_required_parameter_types(self, mod_path, abun_path, compute_profiles):
        with pytest.raises(ValidationError):
            resolve_config(mod_path, abun_path, compute_profiles)

    @pytest.mark.parametrize("option, value", [
        ("num_workers", "4"),
        ("num_workers", 2.5),
        ("num_workers", True),
        ("save_constr_models", 1),
        ("lower_bm_bound", "0.4"),
        ("host_biomass_rxn_flux", None),
        ("objre", 5),
        ("diet_file_path", []),
        ("info_file_path", 3),
    ])
    def test_optional_parameter_types(self, tmp_path, option, value):
        with pytest.raises(ValidationError, match=option):
            resolve_config("models", "abun.csv", True, res_path=str(tmp_path), **{option: value})

    def test_unknown_option(self, tmp_path):
        with pytest.raises(ValidationError, match="Unknown option"):
            resolve_config("models", "abun.csv", True, res_path=str(tmp_path), solver="cplex")

    def test_duplicate_option_via_alias(self, tmp_path):
        with pytest.raises(ValidationError, match="more than once"):
            resolve_config("models", "abun.csv", True, res_path=str(tmp_path),
                           num_workers=2, numWorkers=4)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_config("models", "abun.csv", "true")


class TestResolvedValues:
    def test_camel_case_aliases(self, tmp_path):
        config = resolve_config("models", "abun.csv", True, resPath=str(tmp_path),
                                numWorkers=6, lowerBMBound=0.2, infoFilePath="info.csv",
                                dietFilePath="MyDiet")
        assert config.num_workers == 6
        assert config.lower_bm_bound == 0.2
        assert config.info_file_path == "info.csv"
        assert config.diet_file_path == "MyDiet"
        assert config.pat_stat is True

    def test_integral_float_worker_count(self, tmp_path):
        config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path), num_workers=4.0)
        assert config.num_workers == 4
        assert isinstance(config.num_workers, int)

    def test_per_individual_diets_become_tuple(self, tmp_path):
        config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path),
                                diet_file_path=["d1", tmp_path / "d2.txt"])
        assert config.diet_file_path == ("d1", str(tmp_path / "d2.txt"))

    def test_config_is_immutable(self, tmp_path):
        config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path))
        with pytest.raises(PydanticValidationError):
            config.num_workers = 8

    def test_model_dump(self, tmp_path):
        config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path))
        data = config.model_dump()
        assert data["mod_path"] == "models"
        assert set(data) == set(MgPipeConfig.model_fields)

    def test_model_dump_by_alias(self, tmp_path):
        config = resolve_config("models", "abun.csv", True, res_path=str(tmp_path), num_workers=3)
        assert config.model_dump(by_alias=True)["numWorkers"] == 3


class TestBadResultPath:
    def test_empty_result_path(self):
        with pytest.raises(ValidationError, match="res_path"):
            resolve_config("models", "abun.csv", True, res_path="")

    def test_result_path_is_a_file(self, tmp_path):
        existing = tmp_path / "results.csv"
        existing.write_text("")
        with pytest.raises(ValidationError, match="not a directory"):
            resolve_config("models", "abun.csv", True, res_path=str(existing))

    def test_result_path_below_a_file(self, tmp_path):
        existing = tmp_path / "results.csv"
        existing.write_text("")
        with pytest.raises(ValidationError, match="res_path"):
            resolve_config("models", "abun.csv", True, res_path=str(existing / "out"))
