"""Purchase order endpoints

Flat (order, delivery date, line item) rows from the warehouse are grouped
into nested orders, one per order and delivery date. Groups with an invalid
delivery date and line items without a positive product id and quantity are
dropped rather than reported as errors."""
