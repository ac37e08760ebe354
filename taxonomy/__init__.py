"""
Curriculum taxonomy
taxonomy/

  labels        — level / domain / cognitive / difficulty labels, type-code grammar
  schemas       — TypeRecord, TaxonomySnapshot, tree node models
  tree_builder  — flat rows → Level → Domain → Standard → Type tree
"""
