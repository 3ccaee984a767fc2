# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#   kernelspec:
#     display_name: Python 3
#     language: python
#     name: python3
# ---

# %% [markdown]
# # Missing data: recognise, visualise, understand, handle
#
# This notebook accompanies the missing data workshop. We will
#
# 1. see how "missing" is represented in Python and how it behaves,
# 2. find missing values that hide behind codes such as `0` or `-99`,
# 3. visualise where the gaps are and which variables go missing together,
# 4. talk about *why* data are missing (MCAR, MAR, MNAR),
# 5. deal with them: deletion, single imputation and multiple imputation.
#
# Cells marked **Exercise** are left blank for you. Put your result in the
# variable named in the exercise and run the check cell underneath.

# %% tags=["hide_input"]
# Uncomment and run this cell if the workshop package is not installed.
# # !pip install -e ..

# %%
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from data import (
    load_dataset, missing_value_properties, propagation_demo, detect_sentinels,
    replace_with_na, zeros_to_na, n_miss, n_complete, prop_miss, pct_miss,
    miss_var_summary, miss_case_summary, miss_var_table, miss_case_table,
    missing_patterns, bind_shadow, generate_missing_data, zero_coded_columns,
)
from evaluation import (
    vis_miss, gg_miss_var, gg_miss_case, gg_miss_upset, geom_miss_point,
    msno_matrix, msno_heatmap, msno_dendrogram,
    little_mcar_test, compare_by_missingness, missingness_association,
    plot_imputed_distributions, plot_pooled_estimates, fit_model, variance_ratio,
)
from imputers import listwise_deletion, MeanImputer, MedianImputer, KNNImputerWrapper, MICEImputerWrapper
from workshop import check_answer, get_exercise

# %% [markdown]
# ## 1. Introduction
#
# We use two small tables that ship with R packages and are mirrored by the
# Rdatasets archive:
#
# * **pima**: diagnostic measurements of 768 women of Pima heritage,
#   with diabetes status,
# * **mammalsleep**: sleep, body weight and brain weight of 62 mammal species.

# %%
pima = load_dataset("pima")
pima_raw = load_dataset("pima_raw")
sleep = load_dataset("mammalsleep")

pima.head()

# %%
sleep.head()

# %% [markdown]
# ## 2. Properties of missing values
#
# pandas has several markers for "missing". They are all detected by
# `pd.isna`, but they do not behave the same way.

# %%
missing_value_properties()

# %% [markdown]
# `NaN` is not equal to itself, and arithmetic with it gives `NaN`. pandas
# aggregations skip missing values by default; numpy does not.

# %%
propagation_demo([1.0, 2.0, np.nan, 4.0])

# %% [markdown]
# ### Missing values in disguise
#
# Missing values are not always `NaN`. In the raw Pima table, a blood pressure
# or a BMI of 0 cannot be a measurement: it means "not measured".

# %%
pima_raw.describe()

# %%
detect_sentinels(pima_raw, zero_columns=zero_coded_columns("pima_raw"))

# %% [markdown]
# `replace_with_na` turns chosen values in chosen columns into `NaN`.

# %%
replace_with_na(pima_raw, {"pressure": 0}).pressure.isna().sum()

# %% [markdown]
# **Exercise (recode_zeros):** recode the zeros in glucose, pressure, triceps,
# insulin and mass of `pima_raw` as missing. Store the result in `pima_recoded`.

# %%
pima_recoded = None

# %%
print(get_exercise("recode_zeros").prompt)
check_answer("recode_zeros", pima_recoded, pima_raw)

# %% [markdown]
# ### Counting
#
# Before drawing anything, count.

# %%
n_miss(pima), n_complete(pima), prop_miss(pima), pct_miss(pima)

# %%
miss_var_summary(pima)

# %%
miss_case_summary(pima).head()

# %%
miss_var_table(pima)

# %%
miss_case_table(pima)

# %% [markdown]
# **Exercise (count_missing):** compute the number of missing values in each
# column of `pima` as a Series called `missing_counts`.

# %%
missing_counts = None

# %%
check_answer("count_missing", missing_counts, pima)

# %% [markdown]
# **Exercise (most_missing_variable):** which variable has the most missing
# values? Store its name in `most_missing`.

# %%
most_missing = None

# %%
check_answer("most_missing_variable", most_missing, pima)

# %% [markdown]
# ## 3. Visualising missingness
#
# `vis_miss` draws the whole table: one row per observation, dark cells are
# missing.

# %%
vis_miss(pima);

# %% [markdown]
# Sorting the columns by missingness and clustering the rows makes the
# structure easier to see.

# %%
vis_miss(pima, sort_miss=True, cluster=True);

# %%
gg_miss_var(pima, show_pct=True);

# %% [markdown]
# Facetting by a grouping variable shows whether missingness differs between
# groups.

# %%
gg_miss_var(pima, facet="diabetes");

# %%
gg_miss_case(pima);

# %% [markdown]
# Which variables go missing *together*? An UpSet plot counts every
# combination.

# %%
gg_miss_upset(pima);

# %%
missing_patterns(pima)

# %% [markdown]
# A scatter plot normally drops rows with a missing coordinate. Here they are
# drawn just below the smallest observed value.

# %%
geom_miss_point(pima, x="insulin", y="glucose");

# %%
geom_miss_point(sleep, x="sws", y="ps");

# %% [markdown]
# The missingno package offers the same views with a different look.

# %%
msno_matrix(sleep);

# %%
msno_heatmap(sleep);

# %%
msno_dendrogram(sleep);

# %% [markdown]
# The shadow matrix keeps an `NA` / `!NA` flag next to every variable, so you
# can group by missingness.

# %%
shadow = bind_shadow(pima, only_miss=True)
shadow.groupby("insulin_NA", observed=True)["glucose"].describe()

# %% [markdown]
# ## 4. Why are the data missing?
#
# * **MCAR**, missing completely at random: the probability of being missing
#   does not depend on any data. Complete cases are a random subsample.
# * **MAR**, missing at random: it depends on *observed* data only (older
#   people skip a question more often, and we know their age).
# * **MNAR**, missing not at random: it depends on the missing value itself
#   (people with high income do not report it).
#
# We can simulate each mechanism on the complete Pima cases.

# %%
pima_complete = listwise_deletion(pima)

mcar, _ = generate_missing_data(pima_complete.drop(columns="diabetes"), "MCAR", 0.2, seed=1)
mar, _ = generate_missing_data(pima_complete.drop(columns="diabetes"), "MAR", 0.2, seed=1, dependency_col="age")
mnar, _ = generate_missing_data(pima_complete.drop(columns="diabetes"), "MNAR", 0.2, seed=1)

fig, axes = plt.subplots(1, 3, figsize=(15, 4), sharey=True)
for ax, (label, amputed) in zip(axes, [("MCAR", mcar), ("MAR", mar), ("MNAR", mnar)]):
    ax.hist(pima_complete["glucose"], bins=30, alpha=0.4, label="complete")
    ax.hist(amputed["glucose"].dropna(), bins=30, alpha=0.6, label="observed after amputation")
    ax.set_title(label)
axes[0].legend();

# %% [markdown]
# Little's test checks whether the means of the variables differ between
# missingness patterns. A small p-value is evidence against MCAR. A large
# p-value does not prove MCAR, and no test can tell MAR from MNAR.

# %%
little_mcar_test(mcar), little_mcar_test(mar)

# %%
little_mcar_test(pima.drop(columns="diabetes"))

# %% [markdown]
# Compare the observed variables between rows where insulin is and is not
# recorded.

# %%
missingness_association(pima, by="insulin")

# %% [markdown]
# **Exercise (mcar_p_value):** run Little's test on `pima` and store the
# p-value in `p_mcar`.

# %%
p_mcar = None

# %%
check_answer("mcar_p_value", p_mcar, pima)

# %% [markdown]
# **Exercise (glucose_by_insulin_missing):** is glucose different when insulin
# is missing? Store the Welch t-test p-value in `p_glucose`.

# %%
p_glucose = None

# %%
check_answer("glucose_by_insulin_missing", p_glucose, pima)

# %% [markdown]
# ## 5. Dealing with missing data
#
# ### Listwise deletion
#
# Drop every row with a missing value. Unbiased under MCAR, wasteful always.

# %%
print(len(pima), "rows before,", len(listwise_deletion(pima)), "after")
print(len(listwise_deletion(pima, columns=["glucose", "mass"])), "when only glucose and mass must be present")

# %% [markdown]
# **Exercise (complete_cases_left):** how many rows survive listwise deletion
# of `pima`? Store the number in `n_left`.

# %%
n_left = None

# %%
check_answer("complete_cases_left", n_left, pima)

# %% [markdown]
# ### Single imputation
#
# Replace every missing value by one number: the mean, the median, or the
# value of similar rows. The table is complete, but the variance of the
# imputed columns shrinks and correlations weaken.

# %%
sleep_numeric = sleep.drop(columns="species")
sleep_mean = MeanImputer().fit_transform(sleep_numeric)
sleep_median = MedianImputer().fit_transform(sleep_numeric)
sleep_knn = KNNImputerWrapper(n_neighbors=5).fit_transform(sleep_numeric)

pd.DataFrame({
    "mean": variance_ratio(sleep_numeric, sleep_mean),
    "median": variance_ratio(sleep_numeric, sleep_median),
    "knn": variance_ratio(sleep_numeric, sleep_knn),
})

# %%
plot_imputed_distributions(sleep_numeric, [sleep_mean], columns=["sws", "ps", "gt"]);

# %% [markdown]
# **Exercise (mean_impute):** mean-impute `sleep` (keep the species column).
# Store the result in `sleep_imputed`.

# %%
sleep_imputed = None

# %%
check_answer("mean_impute", sleep_imputed, sleep)

# %% [markdown]
# ### Multiple imputation
#
# Multiple imputation by chained equations creates *m* completed datasets,
# each with different plausible values. We fit the same model to each and
# pool the results with Rubin's rules, so the uncertainty about the missing
# values ends up in the standard errors.

# %%
imputation = MICEImputerWrapper(m=5, max_iter=10, random_state=1).fit_transform(sleep_numeric)
imputation

# %%
imputation.imputed_values("sws")

# %%
plot_imputed_distributions(sleep_numeric, imputation.imputations, columns=["sws", "ps", "gt"]);

# %%
fits = imputation.with_model("sws ~ np.log10(bw) + odi")
fits.estimates()

# %%
pooled = fits.pool()
pooled

# %%
fits.pool_r_squared()

# %% [markdown]
# Compare with the complete-case analysis.

# %%
cc_fit = fit_model(listwise_deletion(sleep_numeric), "sws ~ np.log10(bw) + odi")
plot_pooled_estimates(pooled, cc_fit);

# %% [markdown]
# Predictive mean matching fills gaps with observed donor values instead of
# model predictions, so imputations always lie in the observed range.

# %%
pmm = MICEImputerWrapper(m=5, max_iter=10, method="pmm", random_state=1).fit_transform(sleep_numeric)
pmm.with_model("sws ~ np.log10(bw) + odi").pool()[["estimate", "std_error", "fmi"]]

# %% [markdown]
# **Exercise (pooled_body_weight_slope):** create 5 imputations of `sleep`
# without species (random_state=1), fit `sws ~ np.log10(bw) + odi` and pool.
# Store the pooled slope of `np.log10(bw)` in `slope`.

# %%
slope = None

# %%
check_answer("pooled_body_weight_slope", slope, sleep)

# %% [markdown]
# ## Summary
#
# * Look for missing values in disguise before anything else.
# * Count and visualise: which variables, which cases, which combinations.
# * Think about the mechanism; the data alone cannot prove MCAR or MAR.
# * Deletion and single imputation are simple but can bias estimates and
#   understate uncertainty. Multiple imputation handles MAR data and carries
#   the imputation uncertainty through to the pooled results.
