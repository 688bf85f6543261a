"""Built-in ERP module catalog."""

from .module_system import JoinSpec, ModuleDescriptor, ModuleKey, ModuleRegistry, SubtableSpec

DEFAULT_DESCRIPTORS = (
    ModuleDescriptor(
        key=ModuleKey.INVENTORY,
        label="Inventory Management",
        description="Stock levels, warehouses, and inventory transactions",
        primary_table="inventory",
        related_tables=["inventory_alerts", "stock_transactions", "warehouses", "items", "categories"],
        display_columns=["id", "items(name)", "warehouses(name)", "quantity", "available_quantity", "updated_at"],
        aggregate_columns=["quantity", "available_quantity"],
        joins=[
            JoinSpec("warehouses", "inventory.warehouse_id = warehouses.id", ["name"]),
            JoinSpec("items", "inventory.item_id = items.id", ["name"]),
        ],
        subtables=[
            SubtableSpec(
                name="Stock Transactions",
                table="stock_transactions",
                display_columns=["id", "transaction_type", "quantity", "reference_number", "created_at"],
                aggregate_columns=["quantity"],
            ),
            SubtableSpec(
                name="Active Warehouses",
                table="warehouses",
                display_columns=["id", "name", "location", "capacity", "updated_at"],
                aggregate_columns=["capacity"],
            ),
        ],
    ),
    ModuleDescriptor(
        key=ModuleKey.CUSTOMER_SERVICE,
        label="Customer Service",
        description="Support tickets, issues, and customer interactions",
        primary_table="customer_issues",
        related_tables=["customer_tickets", "customer_solutions", "customers"],
        display_columns=["id", "issue_id", "issue_type", "status", "updated_at"],
    ),
    ModuleDescriptor(
        key=ModuleKey.PROCUREMENT,
        label="Procurement",
        description="Purchase orders, requisitions, and supplier management",
        primary_table="purchase_orders",
        related_tables=["purchase_order_items", "purchase_requisitions", "suppliers"],
        display_columns=["id", "po_number", "suppliers(name)", "status", "total", "order_date"],
        aggregate_columns=["total"],
        joins=[
            JoinSpec("suppliers", "purchase_orders.supplier_id = suppliers.id", ["name"]),
        ],
        subtables=[
            SubtableSpec(
                name="Purchase Order Items",
                table="purchase_order_items",
                display_columns=["id", "purchase_order_id", "items(name)", "quantity", "price", "created_at"],
                aggregate_columns=["quantity", "price"],
                joins=[JoinSpec("items", "purchase_order_items.item_id = items.id", ["name"])],
            ),
            SubtableSpec(
                name="Goods Receipts",
                table="goods_receipts",
                display_columns=["id", "gr_number", "invoice_number", "status", "created_at"],
            ),
        ],
    ),
    ModuleDescriptor(
        key=ModuleKey.SUPPLY_CHAIN,
        label="Supply Chain",
        description="Logistics, routing, and demand forecasting",
        primary_table="demand_forecasting",
        related_tables=["routing_management", "supply_chain_plans"],
        display_columns=["id", "forecast_id", "predicted_demand", "lead_time", "recommend_order_qty", "created_at"],
        aggregate_columns=["predicted_demand", "recommend_order_qty"],
    ),
    ModuleDescriptor(
        key=ModuleKey.FINANCE,
        label="Finance",
        description="Accounts payable/receivable, payroll, and transactions",
        primary_table="accounts_receivable",
        related_tables=["accounts_payable"],
        display_columns=["id", "invoice_id", "customers(customer_name)", "total_amount", "payment_status", "invoice_date"],
        aggregate_columns=["total_amount"],
        joins=[
            JoinSpec("customers", "accounts_receivable.customer_id = customers.id", ["customer_name"]),
        ],
    ),
    ModuleDescriptor(
        key=ModuleKey.ECOMMERCE,
        label="E-Commerce",
        description="Online store, shopping carts, and orders",
        primary_table="sales_orders",
        related_tables=["customers"],
        display_columns=["id", "order_id", "customers(customer_name)", "total_amount", "delivery_status", "order_date"],
        aggregate_columns=["total_amount"],
        joins=[
            JoinSpec("customers", "sales_orders.customer_id = customers.id", ["customer_name"]),
        ],
    ),
    ModuleDescriptor(
        key=ModuleKey.PROJECT_MANAGEMENT,
        label="Project Management",
        description="Projects, tasks, timelines, and resource allocation",
        primary_table="projects",
        related_tables=["project_tasks", "project_timelines", "project_resources"],
        display_columns=["id", "project_code", "project_name", "project_cost", "estimated_end_date", "status"],
        aggregate_columns=["project_cost"],
    ),
    ModuleDescriptor(
        key=ModuleKey.HR,
        label="Human Resources",
        description="Employee records, departments, and attendance",
        primary_table="employees",
        related_tables=["departments", "attendance"],
        display_columns=["id", "first_name", "last_name", "departments(name)", "position", "salary", "hire_date"],
        aggregate_columns=["salary"],
        joins=[
            JoinSpec("departments", "employees.department_id = departments.id", ["name"]),
        ],
    ),
    ModuleDescriptor(
        key=ModuleKey.SALES,
        label="Sales",
        description="Sales orders, leads, and revenue tracking",
        primary_table="sales_orders",
        related_tables=["leads", "customers"],
        display_columns=["id", "order_id", "customers(customer_name)", "total_amount", "delivery_status", "order_date"],
        aggregate_columns=["total_amount"],
        joins=[
            JoinSpec("customers", "sales_orders.customer_id = customers.id", ["customer_name"]),
        ],
    ),
    ModuleDescriptor(
        key=ModuleKey.ALL,
        label="All Modules",
        description="Overview of all module activities",
        primary_table="",
        display_columns=["id", "module", "type", "status", "date", "records"],
        synthetic=True,
    ),
)


def default_registry() -> ModuleRegistry:
    """Registry with the built-in ERP modules."""
    return ModuleRegistry(DEFAULT_DESCRIPTORS)
